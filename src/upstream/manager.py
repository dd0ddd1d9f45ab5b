import asyncio
import logging
from typing import Any, Iterable, Optional

from src.config import Config
from src.constants import (
    DEFAULT_CALL_TIMEOUT,
    DEFAULT_CLIENT_NAME,
    DEFAULT_CLIENT_VERSION,
    DEFAULT_UPSTREAM_TIMEOUT
)
from src.exceptions import (
    InvalidTargetError,
    MCPException,
    ServerNotFoundError,
    TransportError,
    TransportErrorKind
)
from src.upstream.client import UpstreamClient
from src.upstream.schemas import (
    ServerType,
    Tool,
    ToolInvocationRequest,
    UpstreamServerConfig
)
from src.upstream.transport import create_transport

logger = logging.getLogger(__name__)

class UpstreamManager:
    """Fans tool listing out to upstream MCP servers and routes tool calls to them.

    Every operation opens its own sessions and closes them before returning;
    nothing is cached or pooled between calls.
    """

    def __init__(
        self,
        use_docker_host: bool = True,
        manage_stdio: bool = False,
        upstream_timeout: float = DEFAULT_UPSTREAM_TIMEOUT,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION
    ) -> None:
        self.use_docker_host = use_docker_host
        self.manage_stdio = manage_stdio
        self.upstream_timeout = upstream_timeout
        self.call_timeout = call_timeout
        self.client_name = client_name
        self.client_version = client_version

    @classmethod
    def from_config(cls, config: Config) -> "UpstreamManager":
        return cls(
            use_docker_host=config.USE_DOCKER_HOST,
            manage_stdio=config.MANAGE_STDIO_SERVERS,
            upstream_timeout=config.UPSTREAM_TIMEOUT,
            call_timeout=config.CALL_TIMEOUT,
            client_name=config.CLIENT_NAME,
            client_version=config.CLIENT_VERSION
        )

    def _create_client(self, server: UpstreamServerConfig) -> UpstreamClient:
        transport = create_transport(server, use_docker_host=self.use_docker_host)
        return UpstreamClient(
            server,
            transport,
            client_name=self.client_name,
            client_version=self.client_version
        )

    def is_reachable(self, server: UpstreamServerConfig) -> bool:
        """Whether the gateway itself contacts this server"""
        if server.type is ServerType.SSE:
            return bool(server.url)
        if server.type is ServerType.STDIO:
            return self.manage_stdio and bool(server.command)
        return False

    async def discover_tools(self, server: UpstreamServerConfig) -> list[Tool]:
        """List one server's tools; raises on any failure"""
        logger.info(f"🔍 Discovering tools from: {server.name} (type: {server.type.value})")
        async with self._create_client(server) as client:
            tools = await client.list_tools()
        logger.info(f"✅ Found {len(tools)} tools from {server.name}")
        return tools

    async def _discover_or_empty(self, server: UpstreamServerConfig) -> list[Tool]:
        try:
            return await asyncio.wait_for(self.discover_tools(server), timeout=self.upstream_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out after {self.upstream_timeout}s fetching tools from {server.name}")
        except MCPException as e:
            logger.warning(f"Error fetching tools from server {server.name}: {e}")
        except Exception:
            logger.exception(f"Unexpected error fetching tools from server {server.name}")
        return []

    async def aggregate_tools(self, servers: Iterable[UpstreamServerConfig]) -> list[Tool]:
        """Collect the tools of every reachable server.

        Servers are queried concurrently. A server that fails (connect,
        handshake, listing or timeout) contributes no tools and does not
        affect the others. Results follow the order of ``servers``; tool
        names are not deduplicated.
        """
        eligible: list[UpstreamServerConfig] = []
        for server in servers:
            if self.is_reachable(server):
                eligible.append(server)
            elif server.type is ServerType.STDIO and not self.manage_stdio:
                logger.debug(f"Skipping STDIO server {server.name}: handled by the caller's MCP client")
            else:
                logger.warning(f"Skipping server {server.name}: incomplete {server.type.value} configuration")

        results = await asyncio.gather(*(self._discover_or_empty(server) for server in eligible))
        return [tool for tools in results for tool in tools]

    async def call_tool(self, server: UpstreamServerConfig, tool: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Route a tool call to one upstream and return its raw result"""
        logger.info(f"🔧 Calling {server.name}/{tool}")
        logger.debug(f"Arguments for {server.name}/{tool}: {arguments}")
        async with self._create_client(server) as client:
            result = await client.call_tool(tool, arguments)
        logger.info(f"📥 Result from {server.name}/{tool}")
        return result

    async def resolve_target(
        self,
        request: ToolInvocationRequest,
        servers: list[UpstreamServerConfig]
    ) -> UpstreamServerConfig:
        """Pick the server a call goes to, by explicit id or by tool ownership"""
        if request.target_server_id:
            server = self._find_active(request.target_server_id, servers)
            if server is None:
                raise ServerNotFoundError("MCP server not found")
            return server

        tools = await self.aggregate_tools(servers)
        owners = list(dict.fromkeys(
            tool.owner_server_id for tool in tools if tool.name == request.tool_name
        ))
        if not owners:
            raise InvalidTargetError(f"No server provides tool '{request.tool_name}'")
        if len(owners) > 1:
            raise InvalidTargetError(
                f"Tool '{request.tool_name}' is provided by several servers; serverUuid is required"
            )

        server = self._find_active(owners[0], servers)
        if server is None:
            raise ServerNotFoundError("MCP server not found")
        return server

    @staticmethod
    def _find_active(server_id: str, servers: list[UpstreamServerConfig]) -> Optional[UpstreamServerConfig]:
        for server in servers:
            if server.id == server_id and server.is_active:
                return server
        return None

    async def invoke(
        self,
        request: ToolInvocationRequest,
        servers: Iterable[UpstreamServerConfig]
    ) -> dict[str, Any]:
        """Execute a tool invocation against exactly one upstream.

        Raises:
            ServerNotFoundError: ``target_server_id`` is not an eligible active server
            InvalidTargetError: no single target, or its type/address do not match
            TransportError, HandshakeError, ProtocolError: the upstream failed
        """
        servers = list(servers)
        server = await self.resolve_target(request, servers)

        if server.type is ServerType.STDIO and not self.manage_stdio:
            logger.info(f"Deferring {server.name}/{request.tool_name} to the caller's STDIO session")
            return {"accepted": True}

        if not self.is_reachable(server):
            raise InvalidTargetError("Invalid server type or configuration")

        try:
            return await asyncio.wait_for(
                self.call_tool(server, request.tool_name, request.parameters),
                timeout=self.call_timeout
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Timed out after {self.call_timeout}s calling {server.name}/{request.tool_name}",
                kind=TransportErrorKind.TIMEOUT,
                cause=e
            ) from e
        except TransportError as e:
            if e.kind is TransportErrorKind.INVALID_ADDRESS:
                raise InvalidTargetError("Invalid server type or configuration") from e
            raise
