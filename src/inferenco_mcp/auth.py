"""
API key guard for the HTTP transport.

POST endpoints read the key from a configurable header; the SSE stream
reads it from the ``token`` query parameter. Both are checked against the
same allow-list.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from common.config import AuthConfig
from common.logging import get_logger

logger = get_logger(__name__)

MISSING_CREDENTIAL = "Authentication required"
INVALID_CREDENTIAL = "Unauthorized"


@dataclass
class AuthResult:
    """Outcome of an authentication check."""

    allowed: bool
    message: Optional[str] = None


class AuthGuard:
    """Allow-list check for API keys."""

    def __init__(self, config: AuthConfig):
        self.enabled = config.enabled
        self.header = config.header.lower()
        self._api_keys = frozenset(key for key in config.api_keys if key)

        if self.enabled and not self._api_keys:
            logger.warning(event="auth_enabled_without_keys", header=self.header)

    def _check(self, credential: Optional[str], source: str) -> AuthResult:
        if not self.enabled:
            return AuthResult(allowed=True)

        if credential is None:
            logger.warning(event="auth_missing_credential", source=source)
            return AuthResult(allowed=False, message=MISSING_CREDENTIAL)

        if credential.strip() not in self._api_keys:
            logger.warning(event="auth_invalid_credential", source=source)
            return AuthResult(allowed=False, message=INVALID_CREDENTIAL)

        return AuthResult(allowed=True)

    def check_headers(self, headers: Mapping[str, str]) -> AuthResult:
        """Check the configured API key header."""
        value = headers.get(self.header)
        return self._check(value, source="header")

    def check_token(self, token: Optional[str]) -> AuthResult:
        """Check the ``token`` query parameter used by the SSE stream."""
        return self._check(token, source="query")
