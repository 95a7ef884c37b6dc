"""HTML extractor built on BeautifulSoup."""

from __future__ import annotations

from bs4 import BeautifulSoup

from readtext.ingestion.models import DocumentRecord, ExtractionOptions, Source
from readtext.ingestion.normalization import join_lines, normalize_whitespace

_BLOCK_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "li", "blockquote", "pre", "td", "th"]
_DROPPED_TAGS = ["script", "style", "noscript", "template"]


class HTMLExtractor:
    """Block-level text of the body in document order; ``<title>`` becomes a docvar."""

    format_name = "html"
    binary = False
    row_based = False

    def extract(self, source: Source, payload: str | bytes, options: ExtractionOptions) -> list[DocumentRecord]:
        if not isinstance(payload, str):
            raise TypeError("HTMLExtractor expects decoded text")

        soup = BeautifulSoup(payload, "html.parser")
        for node in soup.find_all(_DROPPED_TAGS):
            node.decompose()

        docvars: dict[str, str] = {}
        if soup.title is not None:
            title = normalize_whitespace(soup.title.get_text(" ", strip=True))
            if title:
                docvars["title"] = title

        body = soup.body or soup
        # nested blocks (p inside li) would repeat text, so only outermost blocks count
        parts = [
            node.get_text(" ", strip=True)
            for node in body.find_all(_BLOCK_TAGS)
            if node.find_parent(_BLOCK_TAGS) is None
        ]
        text = join_lines(parts)
        if not text:
            text = normalize_whitespace(body.get_text(" ", strip=True))
        return [DocumentRecord(text=text, docvars=docvars)]
