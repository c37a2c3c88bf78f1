from __future__ import annotations

from typing import Any, Sequence

from .locale import Locale
from .xliff import XliffService


class Translator:
    """Looks up single labels, accepting ``id`` or fully qualified ``Package:Source:id`` ids."""

    def __init__(self, xliff_service: XliffService, default_locale: str = "en") -> None:
        self._xliff_service = xliff_service
        self._default_locale = Locale.parse(default_locale)

    def translate(
        self,
        label_id: str,
        fallback: str | None = None,
        arguments: Sequence[Any] | None = None,
        source: str = "Main",
        package: str = "Backoffice",
        locale: Locale | None = None,
    ) -> str:
        if label_id.count(":") == 2:
            package, source, label_id = label_id.split(":")
        labels = self._xliff_service.get_labels(locale or self._default_locale)
        value = (
            labels.get(package.replace(".", "_"), {})
            .get(source.replace("/", "_"), {})
            .get(label_id)
        )
        if isinstance(value, list):
            value = value[0] if value else None
        if not value:
            value = fallback if fallback is not None else label_id
        for index, argument in enumerate(arguments or ()):
            value = value.replace("{%d}" % index, str(argument))
        return value
