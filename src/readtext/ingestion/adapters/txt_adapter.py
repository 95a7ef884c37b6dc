"""Plain-text extractor: the decoded payload is the document."""

from __future__ import annotations

from readtext.ingestion.models import DocumentRecord, ExtractionOptions, Source


class TXTExtractor:
    """Emit the whole decoded payload as a single record."""

    format_name = "txt"
    binary = False
    row_based = False

    def extract(self, source: Source, payload: str | bytes, options: ExtractionOptions) -> list[DocumentRecord]:
        if not isinstance(payload, str):
            raise TypeError("TXTExtractor expects decoded text")
        return [DocumentRecord(text=payload)]
