from __future__ import annotations

from .base import ContentResult, UriRedirectResult
from ..i18n.locale import Locale
from ..i18n.xliff import XliffService
from ..services.redirection import BackendRedirectionService


class BackendController:
    """Entry point of the backend: post-login landing and translated labels."""

    def __init__(
        self,
        redirection_service: BackendRedirectionService,
        xliff_service: XliffService,
        login_uri: str,
    ) -> None:
        self._redirection_service = redirection_service
        self._xliff_service = xliff_service
        self._login_uri = login_uri

    def index(self, access_token: str | None) -> UriRedirectResult:
        redirection_uri = self._redirection_service.get_after_login_redirection_uri(access_token)
        if redirection_uri is None:
            redirection_uri = self._login_uri
        return UriRedirectResult(uri=redirection_uri)

    def xliff_as_json(self, locale: str) -> ContentResult:
        """Return the cached JSON catalogue of labels for ``locale``.

        Raises ``InvalidLocaleIdentifierError`` for malformed identifiers.
        """
        return ContentResult(
            content=self._xliff_service.get_cached_json(Locale.parse(locale)),
            media_type="application/json",
        )
