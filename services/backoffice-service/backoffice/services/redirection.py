from __future__ import annotations

import logging

from ..security.authentication import AuthenticationManager

logger = logging.getLogger(__name__)


class BackendRedirectionService:
    """Decides where an authenticated backend user lands after logging in."""

    def __init__(self, authentication_manager: AuthenticationManager, landing_uri: str) -> None:
        self._authentication_manager = authentication_manager
        self._landing_uri = landing_uri

    def get_after_login_redirection_uri(self, access_token: str | None) -> str | None:
        """Return the landing URI for a valid session token, ``None`` when not logged in."""
        if not access_token:
            return None
        resolved = self._authentication_manager.resolve_user(access_token)
        if resolved is None:
            return None
        _, account = resolved
        logger.info("redirecting %s to %s after login", account.account_identifier, self._landing_uri)
        return self._landing_uri
