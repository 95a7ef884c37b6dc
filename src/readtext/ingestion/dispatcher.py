"""Extension-driven routing from sources to registered extractors."""

from __future__ import annotations

import logging

from readtext.errors import UnsupportedFormatError
from readtext.ingestion.adapters.base import Extractor
from readtext.ingestion.models import Source

logger = logging.getLogger(__name__)


def _normalize_extension(extension: str) -> str:
    cleaned = extension.strip().lower()
    if not cleaned:
        raise ValueError("Extension cannot be empty")
    return cleaned if cleaned.startswith(".") else f".{cleaned}"


class FormatRegistry:
    """Exact, case-insensitive extension table; new formats register without touching old ones."""

    def __init__(self, extractors: dict[str, Extractor] | None = None) -> None:
        self._extractors: dict[str, Extractor] = {}
        for extension, extractor in (extractors or {}).items():
            self.register(extension, extractor)

    @property
    def extensions(self) -> list[str]:
        return sorted(self._extractors)

    def register(self, extension: str, extractor: Extractor) -> None:
        """Map ``extension`` to ``extractor``, replacing any previous mapping."""

        if not isinstance(extractor, Extractor):
            raise TypeError(f"{extractor!r} does not implement the Extractor protocol")
        self._extractors[_normalize_extension(extension)] = extractor

    def supports(self, extension: str) -> bool:
        return _normalize_extension(extension) in self._extractors

    def resolve(self, source: Source) -> Extractor:
        """Return the extractor for ``source`` or fail naming the source."""

        extractor = self._extractors.get(source.extension.lower()) if source.extension else None
        if extractor is None:
            shown = source.extension or "<none>"
            raise UnsupportedFormatError(source.identifier, f"Unsupported format {shown}")
        logger.debug("Dispatching %s to %s extractor", source.identifier, extractor.format_name)
        return extractor
