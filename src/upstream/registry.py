# src/upstream/registry.py
import logging
from typing import Optional

from src.auth.service import AuthService
from src.store.repository import ConfigStore
from src.upstream.schemas import ServerStatus, UpstreamServerConfig

logger = logging.getLogger(__name__)

class RegistryLookup:
    """Maps an authenticated caller to the upstream servers it may aggregate"""

    def __init__(self, auth_service: AuthService, store: ConfigStore) -> None:
        self.auth_service = auth_service
        self.store = store

    def resolve_profile(self, credential: Optional[str]) -> str:
        return self.auth_service.authenticate(credential)

    def eligible_servers(self, credential: Optional[str]) -> list[UpstreamServerConfig]:
        """Active servers of the caller's profile, in store order.

        Raises AuthError before anything else when the caller cannot be
        resolved to a profile.
        """
        profile_id = self.resolve_profile(credential)
        servers = self.store.list_servers(profile_id, status=ServerStatus.ACTIVE)
        logger.debug(f"Profile {profile_id} has {len(servers)} active servers")
        return servers
