"""Shared extractor contract for per-format parsers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from readtext.ingestion.models import DocumentRecord, ExtractionOptions, Source


@runtime_checkable
class Extractor(Protocol):
    """Protocol every format extractor implements.

    ``binary`` extractors receive raw bytes; text extractors receive the payload
    already decoded by the encoding resolver. ``row_based`` extractors may emit
    many records per source and get an index suffix on their doc_ids.
    """

    format_name: str
    binary: bool
    row_based: bool

    def extract(self, source: Source, payload: str | bytes, options: ExtractionOptions) -> list[DocumentRecord]:
        """Convert one source payload into document records."""
