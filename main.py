# main.py
import logging
from fastmcp import FastMCP
from starlette.applications import Starlette

from src.config import config
from src.auth.service import AuthService
from src.store.repository import ConfigStore
from src.upstream.manager import UpstreamManager
from src.upstream.registry import RegistryLookup
from src.api.routes import register_api_routes

logger = logging.getLogger(__name__)

# Initialize components
mcp = FastMCP("MCP Aggregation Gateway")
store = ConfigStore(config.STORE_PATH)
upstream = UpstreamManager.from_config(config)
registry = RegistryLookup(AuthService(store), store)

register_api_routes(mcp, upstream, registry, request_timeout=config.REQUEST_TIMEOUT)

def create_app() -> Starlette:
    """Build the ASGI application"""
    logger.info("🚀 Starting MCP Aggregation Gateway...")
    if config.MANAGE_STDIO_SERVERS:
        logger.info("STDIO servers are spawned and owned by the gateway")
    return mcp.http_app()

if __name__ == "__main__":
    import uvicorn

    app = create_app()
    logger.info(f"🌐 Server starting on {config.HOST}:{config.PORT}")
    uvicorn.run(app, host=config.HOST, port=config.PORT)
