"""Locale identifiers as used to pick translation catalogues."""

from __future__ import annotations

import re
from dataclasses import dataclass

_LOCALE_PATTERN = re.compile(
    r"""
    ^(?P<language>[a-zA-Z]{2,3})
    (?:[-_](?P<script>[a-zA-Z]{4}))?
    (?:[-_](?P<region>[a-zA-Z]{2}|[0-9]{3}))?
    (?:[-_](?P<variant>[a-zA-Z0-9]{4,8}))?$
    """,
    re.VERBOSE,
)


class InvalidLocaleIdentifierError(ValueError):
    """Raised when a string cannot be parsed as a locale identifier."""


@dataclass(frozen=True, slots=True)
class Locale:
    language: str
    script: str | None = None
    region: str | None = None
    variant: str | None = None

    @classmethod
    def parse(cls, identifier: str) -> "Locale":
        match = _LOCALE_PATTERN.match(identifier.strip())
        if match is None:
            raise InvalidLocaleIdentifierError(f'"{identifier}" is not a valid locale identifier')
        script = match.group("script")
        region = match.group("region")
        variant = match.group("variant")
        return cls(
            language=match.group("language").lower(),
            script=script.title() if script else None,
            region=region.upper() if region else None,
            variant=variant.lower() if variant else None,
        )

    @property
    def identifier(self) -> str:
        parts = (self.language, self.script, self.region, self.variant)
        return "_".join(part for part in parts if part)

    @property
    def parent(self) -> "Locale | None":
        """The locale with its most specific component dropped, ``None`` for a bare language."""
        if self.variant:
            return Locale(self.language, self.script, self.region)
        if self.region:
            return Locale(self.language, self.script)
        if self.script:
            return Locale(self.language)
        return None

    def __str__(self) -> str:
        return self.identifier
