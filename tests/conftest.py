# tests/conftest.py
import json
import pytest
from pathlib import Path
from typing import Any, AsyncGenerator, Callable
import sys

from fastmcp import FastMCP

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.auth.service import AuthService
from src.store.repository import ConfigStore
from src.upstream.manager import UpstreamManager
from src.upstream.registry import RegistryLookup
from src.upstream.schemas import ServerStatus, ServerType, UpstreamServerConfig


TEST_API_KEY = "sk_mt_test_key"
TEST_PROFILE = "profile-1"
OTHER_API_KEY = "sk_mt_other_key"
OTHER_PROFILE = "profile-2"


def make_server(
    server_id: str,
    server_type: ServerType = ServerType.SSE,
    status: ServerStatus = ServerStatus.ACTIVE,
    url: str | None = None,
    command: str | None = None,
    args: list[str] | None = None,
    profile_id: str = TEST_PROFILE
) -> UpstreamServerConfig:
    """Build a server record; SSE servers default to a URL derived from the id"""
    if server_type is ServerType.SSE and url is None:
        url = f"https://{server_id}.example.com/sse"
    return UpstreamServerConfig(
        id=server_id,
        name=server_id,
        type=server_type,
        status=status,
        url=url,
        command=command,
        args=args or [],
        profile_id=profile_id
    )


@pytest.fixture
def server_factory() -> Callable[..., UpstreamServerConfig]:
    return make_server


@pytest.fixture
def store_data() -> dict[str, Any]:
    """Raw contents of the JSON config store"""
    return {
        "api_keys": [
            {"key": TEST_API_KEY, "profile_uuid": TEST_PROFILE},
            {"key": OTHER_API_KEY, "profile_uuid": OTHER_PROFILE}
        ],
        "servers": [
            {
                "uuid": "alpha",
                "name": "alpha",
                "type": "SSE",
                "status": "ACTIVE",
                "url": "http://localhost:9000/sse",
                "profile_uuid": TEST_PROFILE
            },
            {
                "uuid": "beta",
                "name": "beta",
                "type": "STDIO",
                "status": "ACTIVE",
                "command": "npx",
                "args": ["-y", "@example/server"],
                "env": {"TOKEN": "secret"},
                "profile_uuid": TEST_PROFILE
            },
            {
                "uuid": "gamma",
                "name": "gamma",
                "type": "SSE",
                "status": "INACTIVE",
                "url": "https://gamma.example.com/sse",
                "profile_uuid": TEST_PROFILE
            },
            {
                "uuid": "delta",
                "name": "delta",
                "type": "SSE",
                "status": "ACTIVE",
                "url": "https://delta.example.com/sse",
                "profile_uuid": OTHER_PROFILE
            }
        ]
    }


@pytest.fixture
def store_file(tmp_path: Path, store_data: dict[str, Any]) -> Path:
    path = tmp_path / "servers.json"
    path.write_text(json.dumps(store_data))
    return path


@pytest.fixture
def config_store(store_file: Path) -> ConfigStore:
    return ConfigStore(store_file)


@pytest.fixture
def auth_service(config_store: ConfigStore) -> AuthService:
    """Create a fresh AuthService instance for testing"""
    return AuthService(config_store)


@pytest.fixture
def registry(auth_service: AuthService, config_store: ConfigStore) -> RegistryLookup:
    return RegistryLookup(auth_service, config_store)


@pytest.fixture
def upstream_manager() -> UpstreamManager:
    """Create a fresh UpstreamManager instance for testing"""
    return UpstreamManager(use_docker_host=False, upstream_timeout=5, call_timeout=5)


@pytest.fixture
def alpha_server() -> FastMCP:
    """In-memory upstream serving a single search tool"""
    server = FastMCP("alpha")

    @server.tool
    def search(q: str) -> str:
        """Search the index"""
        return f"results for {q}"

    return server


@pytest.fixture
def echo_server() -> FastMCP:
    """In-memory upstream that also exposes a tool named search"""
    server = FastMCP("echo")

    @server.tool
    def search(q: str) -> str:
        """Echo the query"""
        return q

    @server.tool
    def ping() -> str:
        """Reply with pong"""
        return "pong"

    return server


@pytest.fixture
def in_memory_transports(monkeypatch: pytest.MonkeyPatch) -> Callable[[dict[str, FastMCP]], None]:
    """Route selected server ids to in-memory FastMCP servers.

    Servers not in the mapping keep their real transport.
    """
    from src.upstream import manager as manager_module
    real_create_transport = manager_module.create_transport

    def install(upstreams: dict[str, FastMCP]) -> None:
        def create_transport(server: UpstreamServerConfig, use_docker_host: bool = True) -> Any:
            if server.id in upstreams:
                return upstreams[server.id]
            return real_create_transport(server, use_docker_host=use_docker_host)

        monkeypatch.setattr(manager_module, "create_transport", create_transport)

    return install


@pytest.fixture
async def test_client(registry: RegistryLookup, upstream_manager: UpstreamManager) -> AsyncGenerator[Any, None]:
    """Create test client over the API routes"""
    from httpx import ASGITransport, AsyncClient
    from src.api.routes import register_api_routes

    mcp = FastMCP("Test MCP Aggregation Gateway")
    register_api_routes(mcp, upstream_manager, registry, request_timeout=10)
    app = mcp.http_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
