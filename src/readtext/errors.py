"""Domain errors raised across source expansion, extraction and assembly."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ReadtextError(Exception):
    """Base error; every failure carries the offending source identifier."""

    source: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (source={self.source})"


@dataclass(slots=True)
class SourceResolutionError(ReadtextError):
    """Locator matched nothing, archive is corrupt, or a URL could not be fetched."""


@dataclass(slots=True)
class UnsupportedFormatError(ReadtextError):
    """No extractor is registered for the source extension."""


@dataclass(slots=True)
class EncodingError(ReadtextError):
    """Unknown encoding label, missing per-source label, or undecodable bytes."""

    label: str | None = None

    def __str__(self) -> str:
        if self.label is None:
            return f"{self.message} (source={self.source})"
        return f"{self.message} (source={self.source}, encoding={self.label})"


@dataclass(slots=True)
class ParseError(ReadtextError):
    """Malformed tabular, JSON or XML payload."""


@dataclass(slots=True)
class ConverterError(ReadtextError):
    """External PDF/DOC/DOCX conversion failed."""

    reason: str = ""


@dataclass(slots=True)
class DocvarMismatchError(ReadtextError):
    """Filename token count differs from the configured docvar names."""

    expected: int = 0
    actual: int = 0


@dataclass(slots=True)
class ConfigurationError(ReadtextError):
    """Missing, invalid or unrecognized ingestion option."""


class ConversionFailure(RuntimeError):
    """Raised by converter collaborators; wrapped into ConverterError by extractors."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
