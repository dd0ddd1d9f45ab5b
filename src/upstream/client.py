# src/upstream/client.py
import logging
from contextlib import AsyncExitStack
from typing import Any, Optional

from fastmcp import Client
from fastmcp.client.transports import ClientTransport
from mcp.shared.exceptions import McpError
from mcp.types import Implementation

from src.constants import DEFAULT_CLIENT_NAME, DEFAULT_CLIENT_VERSION
from src.exceptions import (
    HandshakeError,
    ProtocolError,
    ToolDiscoveryError,
    TransportError,
    TransportErrorKind
)
from src.upstream.schemas import Tool, UpstreamServerConfig

logger = logging.getLogger(__name__)


def _is_mcp_error(exc: BaseException) -> bool:
    """Check for an MCP protocol error, including inside task-group exception groups"""
    if isinstance(exc, McpError):
        return True
    if isinstance(exc, BaseExceptionGroup):
        return any(_is_mcp_error(inner) for inner in exc.exceptions)
    return False


class UpstreamClient:
    """One MCP session with one upstream server.

    Use as an async context manager so the session (and, for STDIO, the
    subprocess) is released on every exit path::

        async with UpstreamClient(server, transport) as client:
            tools = await client.list_tools()
    """

    def __init__(
        self,
        server: UpstreamServerConfig,
        transport: ClientTransport,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
        init_timeout: Optional[float] = None
    ) -> None:
        self.server = server
        self._client = Client(
            transport,
            client_info=Implementation(name=client_name, version=client_version),
            init_timeout=init_timeout
        )
        self._stack: Optional[AsyncExitStack] = None

    @property
    def is_open(self) -> bool:
        return self._stack is not None

    async def open(self) -> "UpstreamClient":
        """Connect and run the MCP initialize handshake"""
        if self._stack is not None:
            return self

        stack = AsyncExitStack()
        try:
            await stack.enter_async_context(self._client)
        except Exception as e:
            if _is_mcp_error(e):
                raise HandshakeError(f"Handshake with {self.server.name} failed: {e}") from e
            raise TransportError(
                f"Failed to connect to {self.server.name}: {e}",
                kind=TransportErrorKind.CONNECT_FAILED,
                cause=e
            ) from e

        self._stack = stack
        logger.debug(f"Session opened with {self.server.name}")
        return self

    async def close(self) -> None:
        """Release the session; safe to call more than once"""
        stack, self._stack = self._stack, None
        if stack is None:
            return
        try:
            await stack.aclose()
        except Exception as e:
            # Teardown errors are logged, never raised
            logger.warning(f"Error closing session with {self.server.name}: {e}")
        logger.debug(f"Session closed with {self.server.name}")

    async def list_tools(self) -> list[Tool]:
        """Return the upstream's tools in the order it advertises them"""
        self._ensure_open()
        try:
            tools = await self._client.list_tools()
        except Exception as e:
            raise ToolDiscoveryError(f"Failed to list tools from {self.server.name}: {e}") from e

        return [
            Tool(
                name=tool.name,
                description=tool.description,
                input_schema=tool.inputSchema,
                owner_server_id=self.server.id
            )
            for tool in tools
        ]

    async def call_tool(self, name: str, parameters: dict[str, Any]) -> dict[str, Any]:
        """Invoke a tool and return the upstream's raw result.

        Parameters are forwarded verbatim. An upstream tool error
        (``isError: true``) is part of the result, not an exception.
        """
        self._ensure_open()
        try:
            result = await self._client.call_tool_mcp(name, parameters)
        except Exception as e:
            raise ProtocolError(f"Call to {self.server.name}/{name} failed: {e}") from e

        return result.model_dump(mode="json", by_alias=True, exclude_none=True)

    def _ensure_open(self) -> None:
        if self._stack is None:
            raise ProtocolError(f"Session with {self.server.name} is not open")

    async def __aenter__(self) -> "UpstreamClient":
        return await self.open()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
