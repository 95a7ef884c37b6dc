"""Extractor implementations and the default extension table."""

from __future__ import annotations

from readtext.ingestion.converters import DefaultConverter, DocumentConverter

from .base import Extractor
from .converted_adapter import ConvertedDocumentExtractor
from .html_adapter import HTMLExtractor
from .json_adapter import JSONExtractor
from .tabular_adapter import TabularExtractor
from .txt_adapter import TXTExtractor
from .xml_adapter import XMLExtractor


def build_default_extractors(converter: DocumentConverter | None = None) -> dict[str, Extractor]:
    """Return the default extension -> extractor map."""

    converter = converter or DefaultConverter()
    tabular = TabularExtractor()
    json_extractor = JSONExtractor()
    json_lines = JSONExtractor(lines=True)
    html = HTMLExtractor()

    return {
        ".txt": TXTExtractor(),
        ".csv": tabular,
        ".tab": tabular,
        ".tsv": tabular,
        ".json": json_extractor,
        ".jsonl": json_lines,
        ".ndjson": json_lines,
        ".xml": XMLExtractor(),
        ".html": html,
        ".htm": html,
        ".pdf": ConvertedDocumentExtractor("pdf", converter),
        ".doc": ConvertedDocumentExtractor("doc", converter),
        ".docx": ConvertedDocumentExtractor("docx", converter),
        ".odt": ConvertedDocumentExtractor("odt", converter),
    }


__all__ = [
    "ConvertedDocumentExtractor",
    "Extractor",
    "HTMLExtractor",
    "JSONExtractor",
    "TXTExtractor",
    "TabularExtractor",
    "XMLExtractor",
    "build_default_extractors",
]
