"""Extractor for formats whose bytes are decoded by an external converter."""

from __future__ import annotations

from readtext.errors import ConversionFailure, ConverterError
from readtext.ingestion.converters import DocumentConverter
from readtext.ingestion.models import DocumentRecord, ExtractionOptions, Source


class ConvertedDocumentExtractor:
    """Invoke the converter and wrap its text into a single record.

    Converter failures surface as ``ConverterError`` tagged with the source; the
    text is never replaced by an empty default.
    """

    binary = True
    row_based = False

    def __init__(self, format_tag: str, converter: DocumentConverter) -> None:
        if not format_tag:
            raise ValueError("format_tag cannot be empty")
        self.format_name = format_tag
        self._converter = converter

    def extract(self, source: Source, payload: str | bytes, options: ExtractionOptions) -> list[DocumentRecord]:
        if not isinstance(payload, bytes):
            raise TypeError("ConvertedDocumentExtractor expects raw bytes")
        try:
            text = self._converter.convert(payload, self.format_name)
        except ConversionFailure as exc:
            raise ConverterError(
                source.identifier,
                f"{self.format_name.upper()} conversion failed: {exc.reason}",
                reason=exc.reason,
            ) from exc
        return [DocumentRecord(text=text)]
