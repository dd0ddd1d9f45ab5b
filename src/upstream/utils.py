# src/upstream/utils.py
from urllib.parse import urlsplit, urlunsplit

from src.constants import DOCKER_HOST_ALIAS


def rewrite_localhost_url(url: str, use_docker_host: bool = True) -> str:
    """
    Point a localhost URL at the Docker host when running in a container.
    Only the host portion is rewritten; port, path, query and credentials
    are kept as given. Any other host is returned unchanged.
    """
    if not use_docker_host:
        return url

    parts = urlsplit(url)
    if parts.hostname != "localhost":
        return url

    userinfo, _, _ = parts.netloc.rpartition("@")
    port = f":{parts.port}" if parts.port is not None else ""
    netloc = f"{DOCKER_HOST_ALIAS}{port}"
    if userinfo:
        netloc = f"{userinfo}@{netloc}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))
