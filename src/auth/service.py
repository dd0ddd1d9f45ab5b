# src/auth/service.py
import hmac
import logging
from typing import Optional

from src.exceptions import AuthError
from src.store.repository import ConfigStore

logger = logging.getLogger(__name__)

class AuthService:
    """Resolves API keys to the profile whose servers the caller may use"""

    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    @staticmethod
    def extract_api_key(credential: Optional[str]) -> Optional[str]:
        """Pull the key out of an Authorization header value (a bare key is accepted)"""
        if not credential:
            return None

        scheme, _, token = credential.strip().partition(" ")
        if not token:
            if scheme.lower() == "bearer":
                return None
            return scheme or None
        if scheme.lower() != "bearer":
            return None
        return token.strip() or None

    def authenticate(self, credential: Optional[str]) -> str:
        """Return the profile id for a credential or raise AuthError"""
        api_key = self.extract_api_key(credential)
        if not api_key:
            raise AuthError("Missing or invalid Authorization header")

        profile_id: Optional[str] = None
        for known_key, known_profile in self.store.api_keys.items():
            if hmac.compare_digest(known_key.encode(), api_key.encode()):
                profile_id = known_profile

        if not profile_id:
            logger.warning(f"Rejected API key {api_key[:6]}...")
            raise AuthError("Invalid API key")
        return profile_id
