"""Delimited-table extractor (csv/tab/tsv): one record per data row."""

from __future__ import annotations

import csv
import io

from readtext.errors import ConfigurationError, ParseError
from readtext.ingestion.models import DocumentRecord, ExtractionOptions, Source

_DEFAULT_SEPARATORS = {".csv": ",", ".tab": "\t", ".tsv": "\t"}


def resolve_column(columns: list[str], field: str | int, *, source: str, option: str) -> str:
    """Map a column name or 1-based column index to a column name."""

    if isinstance(field, bool):
        raise ConfigurationError(source, f"{option} must be a column name or 1-based index")
    if isinstance(field, int):
        if not 1 <= field <= len(columns):
            raise ConfigurationError(source, f"{option} index {field} is out of range for {len(columns)} columns")
        return columns[field - 1]
    if field not in columns:
        raise ConfigurationError(source, f"{option} {field!r} not found in columns {columns}")
    return field


class TabularExtractor:
    """Parse delimited text; ``text_field`` is the body, other columns are docvars."""

    format_name = "tabular"
    binary = False
    row_based = True

    def extract(self, source: Source, payload: str | bytes, options: ExtractionOptions) -> list[DocumentRecord]:
        if not isinstance(payload, str):
            raise TypeError("TabularExtractor expects decoded text")
        if options.text_field is None:
            raise ConfigurationError(source.identifier, "text_field is required for delimited files")

        separator = options.sep or _DEFAULT_SEPARATORS.get(source.extension, ",")
        reader = csv.reader(io.StringIO(payload, newline=""), delimiter=separator)
        try:
            rows = [(reader.line_num, row) for row in reader if row]
        except csv.Error as exc:
            raise ParseError(source.identifier, f"Line {reader.line_num}: {exc}") from exc
        if not rows:
            raise ParseError(source.identifier, "Delimited file has no rows")

        if options.header:
            _, columns = rows[0]
            data_rows = rows[1:]
        else:
            columns = [f"V{index}" for index in range(1, len(rows[0][1]) + 1)]
            data_rows = rows
        if len(set(columns)) != len(columns):
            raise ParseError(source.identifier, f"Duplicate column names in header: {columns}")

        text_column = resolve_column(columns, options.text_field, source=source.identifier, option="text_field")
        id_column = None
        if options.docid_field is not None:
            id_column = resolve_column(columns, options.docid_field, source=source.identifier, option="docid_field")
            if id_column == text_column:
                raise ConfigurationError(source.identifier, "docid_field and text_field must differ")

        records: list[DocumentRecord] = []
        for line_num, row in data_rows:
            if len(row) != len(columns):
                raise ParseError(
                    source.identifier,
                    f"Line {line_num}: expected {len(columns)} fields, got {len(row)}",
                )
            values = dict(zip(columns, row))
            text = values.pop(text_column)
            doc_id = values.pop(id_column) if id_column is not None else None
            records.append(DocumentRecord(text=text, docvars=values, doc_id=doc_id))
        return records
