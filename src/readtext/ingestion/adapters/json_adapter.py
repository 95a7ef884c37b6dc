"""JSON / JSON Lines extractor: one record per object."""

from __future__ import annotations

import json
from typing import Any

from readtext.errors import ConfigurationError, ParseError
from readtext.ingestion.models import DocumentRecord, ExtractionOptions, Source


def _parse_lines(source: Source, payload: str) -> list[Any]:
    objects: list[Any] = []
    for line_no, line in enumerate(payload.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            objects.append(json.loads(line))
        except json.JSONDecodeError as exc:
            raise ParseError(source.identifier, f"Malformed JSON at line {line_no}, column {exc.colno}: {exc.msg}") from exc
    return objects


class JSONExtractor:
    """Top-level object, array of objects, or JSON Lines.

    Whole-document parsing is tried first; when it fails with trailing data the
    payload is read as JSON Lines, one object per non-blank line.
    """

    format_name = "json"
    binary = False
    row_based = True

    def __init__(self, *, lines: bool = False) -> None:
        self._lines = lines

    def extract(self, source: Source, payload: str | bytes, options: ExtractionOptions) -> list[DocumentRecord]:
        if not isinstance(payload, str):
            raise TypeError("JSONExtractor expects decoded text")
        if options.text_field is None:
            raise ConfigurationError(source.identifier, "text_field is required for JSON files")
        if not isinstance(options.text_field, str):
            raise ConfigurationError(source.identifier, "text_field must be a key name for JSON files")
        if options.docid_field is not None and not isinstance(options.docid_field, str):
            raise ConfigurationError(source.identifier, "docid_field must be a key name for JSON files")

        objects = self._load(source, payload)
        records: list[DocumentRecord] = []
        for position, item in enumerate(objects, start=1):
            if not isinstance(item, dict):
                raise ParseError(source.identifier, f"Element {position} is not a JSON object")
            if options.text_field not in item:
                raise ConfigurationError(source.identifier, f"text_field {options.text_field!r} missing in element {position}")

            values = dict(item)
            text = values.pop(options.text_field)
            doc_id = None
            if options.docid_field is not None:
                if options.docid_field not in values:
                    raise ConfigurationError(
                        source.identifier,
                        f"docid_field {options.docid_field!r} missing in element {position}",
                    )
                doc_id = str(values.pop(options.docid_field))
            records.append(DocumentRecord(text=None if text is None else str(text), docvars=values, doc_id=doc_id))
        return records

    def _load(self, source: Source, payload: str) -> list[Any]:
        if self._lines:
            return _parse_lines(source, payload)
        try:
            document = json.loads(payload)
        except json.JSONDecodeError as exc:
            if exc.msg == "Extra data":
                return _parse_lines(source, payload)
            raise ParseError(
                source.identifier,
                f"Malformed JSON at line {exc.lineno}, column {exc.colno}: {exc.msg}",
            ) from exc
        if isinstance(document, list):
            return document
        return [document]
