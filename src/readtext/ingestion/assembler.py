"""Assemble extracted records into the final row-ordered result table."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any, Iterator, Sequence

import pandas as pd

from readtext.errors import ConfigurationError
from readtext.ingestion.docvars import merge_docvars
from readtext.ingestion.models import DocumentRecord, DocvarConflict, Source, SourceFailure

RESERVED_COLUMNS = ("doc_id", "text")


@dataclass(slots=True)
class SourceExtraction:
    """Everything the assembler needs about one successfully extracted source."""

    source: Source
    records: list[DocumentRecord]
    docvars: dict[str, Any]
    row_based: bool


@dataclass(slots=True)
class ResultTable:
    """One row per document: ``doc_id``, ``text`` and the union of docvar columns."""

    columns: list[str]
    rows: list[dict[str, Any]]
    warnings: list[SourceFailure] = field(default_factory=list)
    conflicts: list[DocvarConflict] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.rows)

    @property
    def docvar_columns(self) -> list[str]:
        return [name for name in self.columns if name not in RESERVED_COLUMNS]

    def column(self, name: str) -> list[Any]:
        if name not in self.columns:
            raise KeyError(name)
        return [row[name] for row in self.rows]

    def to_records(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self.rows]

    def to_frame(self) -> pd.DataFrame:
        """Pandas view of the table; missing docvars stay None in object columns."""

        frame = pd.DataFrame.from_records(self.rows, columns=self.columns)
        return frame.astype(object).where(frame.notna(), None)

    def to_json(self) -> str:
        """Deterministic JSON rendering (stable key order, no volatile fields)."""

        payload = {
            "columns": self.columns,
            "rows": [[row[name] for name in self.columns] for row in self.rows],
            "warnings": [
                {"source": item.source, "error_type": item.error_type, "message": item.message}
                for item in self.warnings
            ],
        }
        return json.dumps(payload, ensure_ascii=False, default=str)


def _doc_id(extraction: SourceExtraction, index: int, record: DocumentRecord) -> str:
    if record.doc_id is not None:
        return str(record.doc_id)
    if extraction.row_based:
        return f"{extraction.source.identifier}.{index}"
    return extraction.source.identifier


def assemble(
    extractions: Sequence[SourceExtraction],
    *,
    warnings: Sequence[SourceFailure] = (),
) -> ResultTable:
    """Concatenate records in discovery order and union the docvar columns."""

    columns: list[str] = list(RESERVED_COLUMNS)
    rows: list[dict[str, Any]] = []
    conflicts: list[DocvarConflict] = []
    seen_ids: set[str] = set()

    for extraction in extractions:
        identifier = extraction.source.identifier
        for index, record in enumerate(extraction.records, start=1):
            clashing = [name for name in (*record.docvars, *extraction.docvars) if name in RESERVED_COLUMNS]
            if clashing:
                raise ConfigurationError(
                    identifier,
                    f"Docvar name(s) {clashing} clash with reserved columns; set docid_field to use an id column",
                )

            merged, found = merge_docvars(identifier, record.docvars, extraction.docvars)
            conflicts.extend(found)

            doc_id = _doc_id(extraction, index, record)
            if doc_id in seen_ids:
                raise ConfigurationError(identifier, f"Duplicate doc_id {doc_id!r}")
            seen_ids.add(doc_id)

            for name in merged:
                if name not in columns:
                    columns.append(name)
            rows.append({"doc_id": doc_id, "text": record.text, **merged})

    # absent docvars become explicit None, keys in column order
    ordered = [{name: row.get(name) for name in columns} for row in rows]
    return ResultTable(columns=columns, rows=ordered, warnings=list(warnings), conflicts=conflicts)
