# src/config.py
import os
import logging
from dotenv import load_dotenv

from src.constants import (
    DEFAULT_CALL_TIMEOUT,
    DEFAULT_CLIENT_NAME,
    DEFAULT_CLIENT_VERSION,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_STORE_PATH,
    DEFAULT_UPSTREAM_TIMEOUT
)

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Application configuration"""
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "3050"))
    DEBUG: bool = _env_flag("DEBUG", "false")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str | None = os.getenv("LOG_FILE")
    STORE_PATH: str = os.getenv("STORE_PATH", DEFAULT_STORE_PATH)

    # Rewrite localhost upstream URLs to the Docker host alias
    USE_DOCKER_HOST: bool = _env_flag("USE_DOCKER_HOST", "true")
    # Let the gateway spawn STDIO upstreams itself instead of deferring to the caller
    MANAGE_STDIO_SERVERS: bool = _env_flag("MANAGE_STDIO_SERVERS", "false")

    UPSTREAM_TIMEOUT: float = float(os.getenv("UPSTREAM_TIMEOUT", str(DEFAULT_UPSTREAM_TIMEOUT)))
    CALL_TIMEOUT: float = float(os.getenv("CALL_TIMEOUT", str(DEFAULT_CALL_TIMEOUT)))
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT)))

    CLIENT_NAME: str = os.getenv("CLIENT_NAME", DEFAULT_CLIENT_NAME)
    CLIENT_VERSION: str = os.getenv("CLIENT_VERSION", DEFAULT_CLIENT_VERSION)

config = Config()

# Configure logging
def setup_logging() -> None:
    """Setup application logging"""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.LOG_FILE:
        handlers.append(logging.FileHandler(config.LOG_FILE))

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

setup_logging()
