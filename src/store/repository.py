# src/store/repository.py
import json
import logging
from pathlib import Path
from typing import Any, Optional

from src.exceptions import ServerConfigError
from src.upstream.schemas import ServerStatus, UpstreamServerConfig

logger = logging.getLogger(__name__)

class ConfigStore:
    """Read-only store of upstream server records and API keys, backed by a JSON file"""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.servers: list[UpstreamServerConfig] = []
        self.api_keys: dict[str, str] = {}
        self.reload()

    def reload(self) -> None:
        """Re-read the JSON file, replacing the in-memory records"""
        if not self.path.exists():
            logger.warning(f"Config store {self.path} not found, starting empty")
            self.servers = []
            self.api_keys = {}
            return

        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ServerConfigError(f"Cannot read config store {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise ServerConfigError(f"Config store {self.path} must contain a JSON object")

        self.servers = self._parse_servers(data.get("servers") or [])
        self.api_keys = self._parse_api_keys(data.get("api_keys") or [])
        logger.info(f"📂 Loaded {len(self.servers)} servers and {len(self.api_keys)} API keys from {self.path}")

    @staticmethod
    def _parse_servers(records: Any) -> list[UpstreamServerConfig]:
        if not isinstance(records, list):
            raise ServerConfigError("'servers' must be a list")

        servers = [UpstreamServerConfig.from_dict(record) for record in records]
        for server in servers:
            if not server.is_well_formed:
                logger.warning(f"Server '{server.name}' has an incomplete {server.type.value} configuration")
        return servers

    @staticmethod
    def _parse_api_keys(records: Any) -> dict[str, str]:
        if not isinstance(records, list):
            raise ServerConfigError("'api_keys' must be a list")

        api_keys: dict[str, str] = {}
        for record in records:
            key = record.get("key") if isinstance(record, dict) else None
            profile = record.get("profile_uuid") if isinstance(record, dict) else None
            if not key or not profile:
                raise ServerConfigError("API key records require 'key' and 'profile_uuid'")
            api_keys[key] = profile
        return api_keys

    def list_servers(self, profile_id: str, status: Optional[ServerStatus] = None) -> list[UpstreamServerConfig]:
        """Servers of a profile, optionally filtered by status, in file order"""
        return [
            server for server in self.servers
            if server.profile_id == profile_id and (status is None or server.status is status)
        ]

    def get_server(
        self,
        server_id: str,
        profile_id: str,
        status: Optional[ServerStatus] = None
    ) -> Optional[UpstreamServerConfig]:
        for server in self.list_servers(profile_id, status):
            if server.id == server_id:
                return server
        return None

    def profile_for_api_key(self, key: str) -> Optional[str]:
        return self.api_keys.get(key)
