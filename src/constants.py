# src/constants.py
# Server type constants
SERVER_TYPE_SSE = "SSE"
SERVER_TYPE_STDIO = "STDIO"

# Server status constants
STATUS_ACTIVE = "ACTIVE"
STATUS_INACTIVE = "INACTIVE"

# Client identity announced during the MCP handshake
DEFAULT_CLIENT_NAME = "metamcp-proxy-client"
DEFAULT_CLIENT_VERSION = "1.0.0"

# Default values (seconds)
DEFAULT_UPSTREAM_TIMEOUT = 10
DEFAULT_CALL_TIMEOUT = 60
DEFAULT_REQUEST_TIMEOUT = 30

# Container-network alias for the Docker host
DOCKER_HOST_ALIAS = "host.docker.internal"
DEFAULT_STORE_PATH = "servers.json"
