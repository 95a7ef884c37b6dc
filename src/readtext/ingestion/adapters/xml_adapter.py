"""XML extractor: text nodes joined in document order, root attributes as docvars."""

from __future__ import annotations

import re

from lxml import etree

from readtext.errors import ParseError
from readtext.ingestion.models import DocumentRecord, ExtractionOptions, Source
from readtext.ingestion.normalization import join_lines

_XML_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>")


class XMLExtractor:
    """Every well-formed document yields exactly one record.

    The body is each text node of the tree (element text and tails, comments and
    processing instructions excluded), whitespace-normalized and joined with
    newlines. Root attributes become docvars keyed by their local name.
    """

    format_name = "xml"
    binary = False
    row_based = False

    def extract(self, source: Source, payload: str | bytes, options: ExtractionOptions) -> list[DocumentRecord]:
        if not isinstance(payload, str):
            raise TypeError("XMLExtractor expects decoded text")

        # lxml refuses str input that still carries an encoding declaration
        markup = _XML_DECLARATION_RE.sub("", payload, count=1)
        parser = etree.XMLParser(resolve_entities=False, no_network=True, load_dtd=False, huge_tree=False)
        try:
            root = etree.fromstring(markup, parser=parser)
        except etree.XMLSyntaxError as exc:
            raise ParseError(source.identifier, f"Malformed XML: {exc}") from exc

        text = join_lines([str(node) for node in root.xpath(".//text()")])
        docvars = {etree.QName(key).localname: value for key, value in root.attrib.items()}
        return [DocumentRecord(text=text, docvars=docvars)]
