"""Validated ingestion options and environment-backed boundary defaults."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
import codecs
import os
import re
from typing import Any, Mapping, Sequence

from readtext.errors import ConfigurationError


DEFAULT_ENCODING = "utf-8"
DEFAULT_URL_TIMEOUT_SECONDS = 30.0
DEFAULT_WORKERS = 1
DEFAULT_DVSEP = "_"

DOCVARS_POLICIES = ("none", "filenames", "filepaths", "metadata")
DOCVAR_MISMATCH_POLICIES = ("raise", "skip")

_OPTIONS_SOURCE = "<options>"


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    value = int(raw_value)
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _parse_positive_float(*, name: str, raw_value: str, minimum: float = 0.001) -> float:
    value = float(raw_value)
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


@dataclass(frozen=True, slots=True)
class ReadtextOptions:
    """Fixed set of recognized ingestion options.

    ``encoding`` is ``None`` (boundary default), one label, a sequence of labels
    matched by source position, or a mapping keyed by source identifier.
    ``docvars_table`` is only read when ``docvarsfrom="metadata"``.
    """

    text_field: str | int | None = None
    docid_field: str | int | None = None
    docvarsfrom: str = "none"
    docvarnames: tuple[str, ...] = ()
    dvsep: str = DEFAULT_DVSEP
    docvars_table: Any = None
    encoding: str | Sequence[str] | Mapping[str, str] | None = None
    recursive: bool = False
    ignore_missing: bool = False
    fail_fast: bool = True
    docvar_mismatch: str = "raise"
    workers: int = DEFAULT_WORKERS
    timeout: float = DEFAULT_URL_TIMEOUT_SECONDS
    sep: str | None = None
    header: bool = True
    _dvsep_pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.docvarsfrom not in DOCVARS_POLICIES:
            raise ConfigurationError(
                _OPTIONS_SOURCE,
                f"docvarsfrom must be one of {', '.join(DOCVARS_POLICIES)}, got {self.docvarsfrom!r}",
            )
        if self.docvar_mismatch not in DOCVAR_MISMATCH_POLICIES:
            raise ConfigurationError(
                _OPTIONS_SOURCE,
                f"docvar_mismatch must be 'raise' or 'skip', got {self.docvar_mismatch!r}",
            )

        if isinstance(self.docvarnames, str):
            names: tuple[str, ...] = (self.docvarnames,)
        else:
            names = tuple(self.docvarnames)
        if any(not isinstance(name, str) or not name for name in names):
            raise ConfigurationError(_OPTIONS_SOURCE, "docvarnames must be non-empty strings")
        if len(set(names)) != len(names):
            raise ConfigurationError(_OPTIONS_SOURCE, "docvarnames must be unique")
        if names and self.docvarsfrom not in ("filenames", "filepaths"):
            raise ConfigurationError(
                _OPTIONS_SOURCE,
                "docvarnames requires docvarsfrom='filenames' or 'filepaths'",
            )
        object.__setattr__(self, "docvarnames", names)

        if not self.dvsep:
            raise ConfigurationError(_OPTIONS_SOURCE, "dvsep cannot be empty")
        try:
            pattern = re.compile(self.dvsep)
        except re.error as exc:
            raise ConfigurationError(_OPTIONS_SOURCE, f"dvsep is not a valid regular expression: {exc}") from exc
        object.__setattr__(self, "_dvsep_pattern", pattern)

        if self.docvarsfrom == "metadata" and self.docvars_table is None:
            raise ConfigurationError(_OPTIONS_SOURCE, "docvarsfrom='metadata' requires docvars_table")

        if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigurationError(_OPTIONS_SOURCE, "workers must be a positive integer")
        if self.timeout <= 0:
            raise ConfigurationError(_OPTIONS_SOURCE, "timeout must be positive")
        if self.sep is not None and len(self.sep) != 1:
            raise ConfigurationError(_OPTIONS_SOURCE, "sep must be a single character")

        self._validate_encoding_labels()

    def _validate_encoding_labels(self) -> None:
        spec = self.encoding
        if spec is None:
            return
        if isinstance(spec, str):
            labels: list[str] = [spec]
        elif isinstance(spec, Mapping):
            labels = list(spec.values())
        else:
            labels = list(spec)
            object.__setattr__(self, "encoding", tuple(labels))
        for label in labels:
            if not isinstance(label, str) or not label:
                raise ConfigurationError(_OPTIONS_SOURCE, f"encoding labels must be non-empty strings, got {label!r}")

    @property
    def dvsep_pattern(self) -> re.Pattern[str]:
        return self._dvsep_pattern

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "ReadtextOptions":
        """Build options from a plain mapping, rejecting unrecognized keys."""

        recognized = {item.name for item in fields(cls) if item.init}
        unknown = sorted(key for key in options if key not in recognized)
        if unknown:
            raise ConfigurationError(_OPTIONS_SOURCE, f"Unrecognized options: {', '.join(unknown)}")
        return cls(**dict(options))


@dataclass(frozen=True, slots=True)
class ReadtextSettings:
    """Boundary defaults applied by entrypoints before calling the core."""

    encoding: str = DEFAULT_ENCODING
    url_timeout_seconds: float = DEFAULT_URL_TIMEOUT_SECONDS
    workers: int = DEFAULT_WORKERS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ReadtextSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        encoding = source.get("READTEXT_ENCODING", DEFAULT_ENCODING).strip()
        timeout_raw = source.get("READTEXT_URL_TIMEOUT", str(DEFAULT_URL_TIMEOUT_SECONDS)).strip()
        workers_raw = source.get("READTEXT_WORKERS", str(DEFAULT_WORKERS)).strip()

        if not encoding:
            raise ValueError("READTEXT_ENCODING cannot be empty")
        try:
            codecs.lookup(encoding)
        except LookupError as exc:
            raise ValueError(f"READTEXT_ENCODING is not a known encoding: {encoding}") from exc
        if not timeout_raw:
            raise ValueError("READTEXT_URL_TIMEOUT cannot be empty")
        if not workers_raw:
            raise ValueError("READTEXT_WORKERS cannot be empty")

        return cls(
            encoding=encoding,
            url_timeout_seconds=_parse_positive_float(name="READTEXT_URL_TIMEOUT", raw_value=timeout_raw, minimum=0.1),
            workers=_parse_positive_int(name="READTEXT_WORKERS", raw_value=workers_raw),
        )
