"""
Transport construction for upstream MCP servers.

SSE servers get an ``SSETransport`` pointed at their (possibly rewritten) URL;
STDIO servers get a ``StdioTransport`` whose subprocess lives exactly as long
as the client session that opens it.
"""
import logging

from fastmcp.client.transports import ClientTransport, SSETransport, StdioTransport

from src.exceptions import TransportError, TransportErrorKind
from src.upstream.schemas import ServerType, UpstreamServerConfig
from src.upstream.utils import rewrite_localhost_url
from src.upstream.validators import validate_args, validate_command, validate_url

logger = logging.getLogger(__name__)


def create_transport(server: UpstreamServerConfig, use_docker_host: bool = True) -> ClientTransport:
    """Build the transport for one upstream.

    Nothing is connected or spawned here; that happens when a client session
    is opened on the returned transport.

    Raises:
        TransportError: the server's address or command is unusable
    """
    if server.type is ServerType.SSE:
        return _create_sse_transport(server, use_docker_host)
    if server.type is ServerType.STDIO:
        return _create_stdio_transport(server)
    raise TransportError(
        f"Unsupported transport type for {server.name}: {server.type}",
        kind=TransportErrorKind.INVALID_ADDRESS
    )


def _create_sse_transport(server: UpstreamServerConfig, use_docker_host: bool) -> SSETransport:
    if not server.url or not validate_url(server.url):
        raise TransportError(
            f"Invalid SSE url for {server.name}: {server.url!r}",
            kind=TransportErrorKind.INVALID_ADDRESS
        )

    url = rewrite_localhost_url(server.url, use_docker_host)
    if url != server.url:
        logger.debug(f"Rewrote {server.url} to {url} for {server.name}")
    return SSETransport(url)


def _create_stdio_transport(server: UpstreamServerConfig) -> StdioTransport:
    if not validate_command(server.command) or not validate_args(server.args):
        raise TransportError(
            f"Invalid STDIO command for {server.name}: {server.command!r}",
            kind=TransportErrorKind.INVALID_ADDRESS
        )

    # keep_alive=False ties the subprocess to the session
    return StdioTransport(
        command=server.command,
        args=list(server.args),
        env=dict(server.env) or None,
        keep_alive=False
    )
