"""Document variables derived from file names, file paths or a caller table."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
import re
from typing import Any, Mapping, Sequence

from readtext.config import ReadtextOptions
from readtext.errors import ConfigurationError, DocvarMismatchError
from readtext.ingestion.models import DocvarConflict, Source, SourceFailure

logger = logging.getLogger(__name__)

_TABLE_KEY = "doc_id"


def strip_extension(name: str, extension: str) -> str:
    if extension and name.lower().endswith(extension):
        return name[: -len(extension)]
    return name


@dataclass(frozen=True, slots=True)
class FilenameDocvarSpec:
    """Separator pattern plus ordered column names; token count must match exactly."""

    separator: re.Pattern[str]
    names: tuple[str, ...]
    from_paths: bool = False

    def __post_init__(self) -> None:
        if not self.names:
            raise ConfigurationError("<docvarnames>", "docvar name list cannot be empty")
        if self.separator.pattern == "":
            raise ConfigurationError("<dvsep>", "docvar separator cannot be empty")

    @classmethod
    def build(cls, separator: str, names: Sequence[str], *, from_paths: bool = False) -> "FilenameDocvarSpec":
        try:
            pattern = re.compile(separator)
        except re.error as exc:
            raise ConfigurationError("<dvsep>", f"dvsep is not a valid regular expression: {exc}") from exc
        return cls(separator=pattern, names=tuple(names), from_paths=from_paths)

    def tokens(self, source: Source) -> list[str]:
        """Split the extension-less name (or path) into raw tokens."""

        if self.from_paths:
            stem = strip_extension(source.identifier, source.extension)
            tokens: list[str] = []
            for part in stem.split("/"):
                tokens.extend(self.separator.split(part))
            return tokens
        return self.separator.split(strip_extension(source.name, source.extension))

    def split(self, source: Source) -> dict[str, str]:
        tokens = self.tokens(source)
        if len(tokens) != len(self.names):
            raise DocvarMismatchError(
                source.identifier,
                f"File name yields {len(tokens)} docvar tokens but {len(self.names)} names were given",
                expected=len(self.names),
                actual=len(tokens),
            )
        return dict(zip(self.names, tokens))


def _clean_value(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


class MetadataTable:
    """Caller-supplied docvar table, keyed by source identifier or by position.

    Accepts a mapping ``identifier -> row``, a sequence of rows (positional), or
    a pandas DataFrame. A DataFrame with a ``doc_id`` column is keyed by it,
    otherwise its rows are positional.
    """

    def __init__(self, table: Any) -> None:
        self._keyed: dict[str, dict[str, Any]] | None = None
        self._positional: list[dict[str, Any]] | None = None

        if hasattr(table, "to_dict") and hasattr(table, "columns"):
            records = [
                {str(key): _clean_value(value) for key, value in row.items()} for row in table.to_dict("records")
            ]
            if _TABLE_KEY in table.columns:
                table = {str(row.pop(_TABLE_KEY)): row for row in records}
            else:
                table = records

        if isinstance(table, Mapping):
            self._keyed = {str(key): dict(row) for key, row in table.items()}
            rows: list[dict[str, Any]] = list(self._keyed.values())
        elif isinstance(table, Sequence) and not isinstance(table, (str, bytes)):
            self._positional = [dict(row) for row in table]
            rows = self._positional
        else:
            raise ConfigurationError("<docvars_table>", "docvars_table must be a mapping, a sequence of rows or a DataFrame")

        columns: list[str] = []
        for row in rows:
            for name in row:
                if name not in columns:
                    columns.append(name)
        self.columns = tuple(columns)

    def lookup(self, source: Source, position: int) -> dict[str, Any]:
        """Row for ``source``; every column is None when nothing matches."""

        row: dict[str, Any] | None = None
        if self._keyed is not None:
            row = self._keyed.get(source.identifier)
            if row is None:
                row = self._keyed.get(source.name)
        elif self._positional is not None and position < len(self._positional):
            row = self._positional[position]

        if row is None:
            logger.debug("No metadata row for %s", source.identifier)
            row = {}
        return {name: row.get(name) for name in self.columns}


@dataclass(slots=True)
class SynthesizedDocvars:
    """Per-source docvars aligned with the source list; None marks a skipped source.

    ``failures`` is keyed by source position, since identifiers from different
    locators may coincide.
    """

    values: list[dict[str, Any] | None]
    failures: dict[int, SourceFailure] = field(default_factory=dict)


class DocvarSynthesizer:
    """Apply the configured docvar policy to the ordered source list."""

    def __init__(self, options: ReadtextOptions) -> None:
        self._policy = options.docvarsfrom
        self._names = options.docvarnames
        self._separator = options.dvsep
        self._on_mismatch = options.docvar_mismatch
        self._table = MetadataTable(options.docvars_table) if options.docvarsfrom == "metadata" else None

    def synthesize(self, sources: Sequence[Source]) -> SynthesizedDocvars:
        if self._policy == "none" or not sources:
            return SynthesizedDocvars(values=[{} for _ in sources])

        if self._table is not None:
            return SynthesizedDocvars(
                values=[self._table.lookup(source, position) for position, source in enumerate(sources)]
            )

        spec = self._filename_spec(sources[0])
        result = SynthesizedDocvars(values=[])
        for position, source in enumerate(sources):
            try:
                result.values.append(spec.split(source))
            except DocvarMismatchError as exc:
                if self._on_mismatch == "raise":
                    raise
                logger.warning("Skipping source with mismatched docvars: %s", exc)
                result.values.append(None)
                result.failures[position] = SourceFailure(
                    source=source.identifier,
                    error_type=type(exc).__name__,
                    message=str(exc),
                )
        return result

    def _filename_spec(self, first: Source) -> FilenameDocvarSpec:
        from_paths = self._policy == "filepaths"
        names = self._names
        if not names:
            # unnamed tokens: docvar1..docvarN, N taken from the first source
            probe = FilenameDocvarSpec.build(self._separator, ("docvar1",), from_paths=from_paths)
            count = len(probe.tokens(first))
            names = tuple(f"docvar{index}" for index in range(1, count + 1))
        return FilenameDocvarSpec.build(self._separator, names, from_paths=from_paths)


def merge_docvars(
    source: str,
    inline: Mapping[str, Any],
    derived: Mapping[str, Any],
) -> tuple[dict[str, Any], list[DocvarConflict]]:
    """Overlay filename/table docvars on inline ones; derived values win."""

    merged = dict(inline)
    conflicts: list[DocvarConflict] = []
    for name, value in derived.items():
        if name in merged and merged[name] != value:
            conflicts.append(DocvarConflict(source=source, name=name, inline_value=merged[name], value=value))
            logger.warning("Docvar %r from %s overrides inline value %r with %r", name, source, merged[name], value)
        merged[name] = value
    return merged, conflicts
