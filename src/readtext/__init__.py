"""Read heterogeneous text files into one document table."""

from readtext.config import ReadtextOptions, ReadtextSettings
from readtext.errors import (
    ConfigurationError,
    ConversionFailure,
    ConverterError,
    DocvarMismatchError,
    EncodingError,
    ParseError,
    ReadtextError,
    SourceResolutionError,
    UnsupportedFormatError,
)
from readtext.ingestion import ResultTable, TextIngestor, detect_encoding, read_texts

__all__ = [
    "ConfigurationError",
    "ConversionFailure",
    "ConverterError",
    "DocvarMismatchError",
    "EncodingError",
    "ParseError",
    "ReadtextError",
    "ReadtextOptions",
    "ReadtextSettings",
    "ResultTable",
    "SourceResolutionError",
    "TextIngestor",
    "UnsupportedFormatError",
    "detect_encoding",
    "read_texts",
]
