# tests/integration/test_e2e.py
"""End-to-end tests for UpstreamManager against real MCP sessions"""
import pytest
from typing import Callable

from fastmcp import Client, FastMCP

from src.exceptions import ServerNotFoundError
from src.upstream.manager import UpstreamManager
from src.upstream.schemas import ToolInvocationRequest, UpstreamServerConfig

ServerFactory = Callable[..., UpstreamServerConfig]
InstallTransports = Callable[[dict[str, FastMCP]], None]

# Nothing listens on port 1, so connecting is refused immediately
REFUSED_URL = "http://127.0.0.1:1/sse"


@pytest.mark.asyncio
class TestAggregationIntegration:
    """Aggregation over in-memory and unreachable upstreams"""

    async def test_alpha_serves_beta_refused(
        self,
        upstream_manager: UpstreamManager,
        server_factory: ServerFactory,
        in_memory_transports: InstallTransports,
        alpha_server: FastMCP
    ) -> None:
        in_memory_transports({"alpha": alpha_server})
        servers = [server_factory("alpha"), server_factory("beta", url=REFUSED_URL)]

        tools = await upstream_manager.aggregate_tools(servers)

        assert [(tool.name, tool.owner_server_id) for tool in tools] == [("search", "alpha")]

    async def test_nothing_reachable(
        self,
        upstream_manager: UpstreamManager,
        server_factory: ServerFactory
    ) -> None:
        servers = [server_factory("a", url=REFUSED_URL), server_factory("b", url=REFUSED_URL)]
        assert await upstream_manager.aggregate_tools(servers) == []

    async def test_duplicate_names_from_two_servers(
        self,
        upstream_manager: UpstreamManager,
        server_factory: ServerFactory,
        in_memory_transports: InstallTransports,
        alpha_server: FastMCP,
        echo_server: FastMCP
    ) -> None:
        in_memory_transports({"alpha": alpha_server, "echo": echo_server})
        servers = [server_factory("alpha"), server_factory("echo")]

        tools = await upstream_manager.aggregate_tools(servers)

        search_owners = [tool.owner_server_id for tool in tools if tool.name == "search"]
        assert search_owners == ["alpha", "echo"]
        assert sorted(tool.name for tool in tools) == ["ping", "search", "search"]


@pytest.mark.asyncio
class TestInvocationIntegration:
    """Tool calls routed over real MCP sessions"""

    async def test_result_is_passed_through_unchanged(
        self,
        upstream_manager: UpstreamManager,
        server_factory: ServerFactory,
        in_memory_transports: InstallTransports,
        alpha_server: FastMCP
    ) -> None:
        in_memory_transports({"alpha": alpha_server})
        request = ToolInvocationRequest("search", {"q": "x"}, target_server_id="alpha")

        result = await upstream_manager.invoke(request, [server_factory("alpha")])

        async with Client(alpha_server) as direct:
            expected = await direct.call_tool_mcp("search", {"q": "x"})
        assert result == expected.model_dump(mode="json", by_alias=True, exclude_none=True)
        assert result["content"][0]["text"] == "results for x"

    async def test_routes_to_sole_owner(
        self,
        upstream_manager: UpstreamManager,
        server_factory: ServerFactory,
        in_memory_transports: InstallTransports,
        alpha_server: FastMCP,
        echo_server: FastMCP
    ) -> None:
        in_memory_transports({"alpha": alpha_server, "echo": echo_server})

        result = await upstream_manager.invoke(
            ToolInvocationRequest("ping", {}),
            [server_factory("alpha"), server_factory("echo")]
        )

        assert result["content"][0]["text"] == "pong"

    async def test_unknown_target_contacts_nothing(
        self,
        upstream_manager: UpstreamManager,
        server_factory: ServerFactory
    ) -> None:
        request = ToolInvocationRequest("search", {}, target_server_id="ghost")
        with pytest.raises(ServerNotFoundError):
            await upstream_manager.invoke(request, [server_factory("alpha", url=REFUSED_URL)])
