# src/api/routes.py
import asyncio
import logging
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from src.constants import DEFAULT_REQUEST_TIMEOUT
from src.exceptions import (
    AuthError,
    HandshakeError,
    InvalidTargetError,
    ProtocolError,
    ServerNotFoundError,
    TransportError
)
from src.upstream.manager import UpstreamManager
from src.upstream.registry import RegistryLookup
from src.upstream.schemas import ToolInvocationRequest

logger = logging.getLogger(__name__)


def register_api_routes(
    mcp: FastMCP,
    upstream: UpstreamManager,
    registry: RegistryLookup,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
) -> None:
    """Register the tool proxy endpoints"""

    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    @mcp.custom_route("/api/mcp-proxy", methods=["GET"])
    async def list_tools(request: Request) -> JSONResponse:
        """Return the aggregated tools of the caller's active servers"""
        try:
            servers = registry.eligible_servers(request.headers.get("Authorization"))
            tools = await asyncio.wait_for(upstream.aggregate_tools(servers), timeout=request_timeout)
            return JSONResponse([tool.to_dict() for tool in tools])
        except AuthError as e:
            return JSONResponse({"error": str(e)}, status_code=401)
        except asyncio.TimeoutError:
            logger.warning(f"Tool aggregation exceeded {request_timeout}s")
            return JSONResponse(
                {"error": "Timed out fetching tools from MCP servers"},
                status_code=504
            )
        except Exception:
            logger.exception("Error in MCP proxy")
            return JSONResponse(
                {"error": "Failed to fetch tools from MCP servers"},
                status_code=500
            )

    @mcp.custom_route("/api/mcp-proxy", methods=["POST"])
    async def call_tool(request: Request) -> JSONResponse:
        """Execute one tool on the server named by serverUuid or owning the tool"""
        try:
            servers = registry.eligible_servers(request.headers.get("Authorization"))

            try:
                body: Any = await request.json()
                if not isinstance(body, dict):
                    raise ValueError("Request body must be a JSON object")
                invocation = ToolInvocationRequest.from_dict(body)
            except ValueError as e:
                return JSONResponse({"error": f"Invalid request: {e}"}, status_code=400)

            result = await asyncio.wait_for(
                upstream.invoke(invocation, servers),
                timeout=request_timeout
            )
            return JSONResponse(result)
        except AuthError as e:
            return JSONResponse({"error": str(e)}, status_code=401)
        except ServerNotFoundError as e:
            return JSONResponse({"error": str(e)}, status_code=404)
        except InvalidTargetError as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        except (TransportError, HandshakeError, ProtocolError) as e:
            logger.warning(f"Upstream failure executing tool: {e}")
            return JSONResponse({"error": str(e)}, status_code=502)
        except asyncio.TimeoutError:
            logger.warning(f"Tool execution exceeded {request_timeout}s")
            return JSONResponse({"error": "Timed out executing tool"}, status_code=504)
        except Exception:
            logger.exception("Error executing tool")
            return JSONResponse(
                {"error": "Failed to execute tool"},
                status_code=500
            )

    @mcp.custom_route("/api/mcp-proxy/servers", methods=["GET"])
    async def list_servers(request: Request) -> JSONResponse:
        """List the caller's active servers without contacting them"""
        try:
            servers = registry.eligible_servers(request.headers.get("Authorization"))
            return JSONResponse({
                "servers": [
                    {**server.to_dict(), "reachable": upstream.is_reachable(server)}
                    for server in servers
                ]
            })
        except AuthError as e:
            return JSONResponse({"error": str(e)}, status_code=401)
        except Exception:
            logger.exception("Error fetching servers")
            return JSONResponse({"error": "Failed to fetch servers"}, status_code=500)
