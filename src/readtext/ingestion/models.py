"""Canonical data structures shared by expansion, extraction and assembly."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True, slots=True)
class Source:
    """One concrete byte-bearing unit discovered by the source expander."""

    identifier: str
    path: Path
    extension: str
    origin: str
    encoding: str | None = None

    @property
    def name(self) -> str:
        return self.identifier.rsplit("/", 1)[-1]

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def with_encoding(self, encoding: str | None) -> "Source":
        return Source(
            identifier=self.identifier,
            path=self.path,
            extension=self.extension,
            origin=self.origin,
            encoding=encoding,
        )


@dataclass(frozen=True, slots=True)
class ExtractionOptions:
    """Format-level options handed to every extractor call."""

    text_field: str | int | None = None
    docid_field: str | int | None = None
    sep: str | None = None
    header: bool = True


@dataclass(frozen=True, slots=True)
class DocumentRecord:
    """A logical document emitted by an extractor; JSON null text stays None."""

    text: str | None
    docvars: dict[str, Any] = field(default_factory=dict)
    doc_id: str | None = None


@dataclass(frozen=True, slots=True)
class SourceFailure:
    """Per-source error collected instead of aborting the whole call."""

    source: str
    error_type: str
    message: str


@dataclass(frozen=True, slots=True)
class DocvarConflict:
    """An inline docvar overwritten by a filename or metadata-table value."""

    source: str
    name: str
    inline_value: Any
    value: Any
