"""XLIFF catalogue loading and the cached JSON label payload served to the backend UI."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any
from xml.etree import ElementTree

from .cache import LabelCache
from .locale import Locale

logger = logging.getLogger(__name__)

PLURAL_GROUP_RESTYPE = "x-gettext-plurals"

Labels = dict[str, dict[str, dict[str, Any]]]


def _local_name(tag: str) -> str:
    return tag.rpartition("}")[2]


def _text(element: ElementTree.Element | None) -> str:
    if element is None:
        return ""
    return "".join(element.itertext())


def _child(element: ElementTree.Element, name: str) -> ElementTree.Element | None:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _unit_value(unit: ElementTree.Element) -> str:
    target = _text(_child(unit, "target"))
    return target if target.strip() else _text(_child(unit, "source"))


def parse_xliff(path: str | os.PathLike[str]) -> dict[str, Any]:
    """Return ``{trans-unit id: label}`` for an XLIFF 1.2 file; plural groups map to lists."""
    root = ElementTree.parse(path).getroot()
    units: dict[str, Any] = {}
    for file_element in root:
        body = _child(file_element, "body")
        if body is None:
            continue
        for element in body:
            name = _local_name(element.tag)
            if name == "trans-unit":
                units[element.get("id", "")] = _unit_value(element)
            elif name == "group" and element.get("restype") == PLURAL_GROUP_RESTYPE:
                forms = [_unit_value(unit) for unit in element if _local_name(unit.tag) == "trans-unit"]
                units[element.get("id", "")] = forms
    return units


class XliffService:
    """Builds label catalogues from ``<root>/<Package>/<locale>/<Source>.xlf`` files.

    Catalogues of the default locale and every ancestor of the requested locale
    are merged first, so more specific translations override general ones.
    """

    def __init__(self, translations_path: str, cache: LabelCache, default_locale: str = "en") -> None:
        self._root = Path(translations_path)
        self._cache = cache
        self._default_locale = Locale.parse(default_locale)

    def get_cached_json(self, locale: Locale) -> str:
        """Return the serialised labels for ``locale``, building and caching them on a miss."""
        cache_key = locale.identifier
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached
        payload = json.dumps(self.build_labels(locale), ensure_ascii=False, sort_keys=True)
        self._cache.set(cache_key, payload)
        logger.info("cached %d bytes of labels for locale %s", len(payload), cache_key)
        return payload

    def get_labels(self, locale: Locale) -> Labels:
        return json.loads(self.get_cached_json(locale))

    def flush_cache(self) -> None:
        self._cache.flush()

    def build_labels(self, locale: Locale) -> Labels:
        labels: Labels = {}
        if not self._root.is_dir():
            logger.warning("translations directory %s does not exist", self._root)
            return labels
        chain = self.fallback_chain(locale)
        for package_dir in sorted(path for path in self._root.iterdir() if path.is_dir()):
            package_key = package_dir.name.replace(".", "_")
            for locale_identifier in chain:
                locale_dir = package_dir / locale_identifier
                if not locale_dir.is_dir():
                    continue
                for xliff_file in sorted(locale_dir.rglob("*.xlf")):
                    source_name = xliff_file.relative_to(locale_dir).with_suffix("").as_posix()
                    source_labels = labels.setdefault(package_key, {}).setdefault(
                        source_name.replace("/", "_"), {}
                    )
                    source_labels.update(parse_xliff(xliff_file))
        return labels

    def fallback_chain(self, locale: Locale) -> list[str]:
        """Locale identifiers from least to most specific, starting with the default locale."""
        chain: list[str] = []
        current: Locale | None = locale
        while current is not None:
            chain.insert(0, current.identifier)
            current = current.parent
        if self._default_locale.identifier not in chain:
            chain.insert(0, self._default_locale.identifier)
        return chain
