"""Ingestion package interfaces."""

from .assembler import ResultTable
from .ingestor import TextIngestor, detect_encoding, read_texts

__all__ = ["ResultTable", "TextIngestor", "detect_encoding", "read_texts"]
