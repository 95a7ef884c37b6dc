"""External converter collaborators for binary word-processor and PDF formats.

The ingestion core only depends on the ``DocumentConverter`` protocol:
``convert(payload, format_tag) -> text`` raising ``ConversionFailure`` with a
human-readable reason. ``DefaultConverter`` wires the libraries the project
ships with; callers can register anything else that honours the protocol.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
import subprocess
import tempfile
from typing import Callable, Protocol
import zipfile

from docx import Document as DocxDocument
from docx.opc.exceptions import PackageNotFoundError
from lxml import etree
import pymupdf

from readtext.errors import ConversionFailure
from readtext.ingestion.normalization import squeeze_blank_lines

logger = logging.getLogger(__name__)

DEFAULT_ANTIWORD_TIMEOUT_SECONDS = 60.0

_ODF_TEXT_NS = "urn:oasis:names:tc:opendocument:xmlns:text:1.0"


class DocumentConverter(Protocol):
    """Byte-to-text conversion for one or more format tags."""

    def convert(self, payload: bytes, format_tag: str) -> str:
        """Return extracted text or raise ConversionFailure."""


def _pdf_to_text(payload: bytes) -> str:
    try:
        with pymupdf.open(stream=payload, filetype="pdf") as doc:
            pages = [page.get_text("text") for page in doc]
    except (pymupdf.FileDataError, RuntimeError, ValueError) as exc:
        raise ConversionFailure(f"pymupdf could not read PDF: {exc}") from exc
    return squeeze_blank_lines("\n".join(page.rstrip("\n") for page in pages))


def _docx_to_text(payload: bytes) -> str:
    try:
        document = DocxDocument(io.BytesIO(payload))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
        raise ConversionFailure(f"python-docx could not read DOCX: {exc}") from exc

    lines = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            lines.append("\t".join(cells))
    return squeeze_blank_lines("\n".join(lines))


def _odt_to_text(payload: bytes) -> str:
    try:
        with zipfile.ZipFile(io.BytesIO(payload)) as archive:
            content = archive.read("content.xml")
    except (zipfile.BadZipFile, KeyError) as exc:
        raise ConversionFailure(f"Not an OpenDocument text package: {exc}") from exc

    parser = etree.XMLParser(resolve_entities=False, no_network=True, load_dtd=False)
    try:
        root = etree.fromstring(content, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ConversionFailure(f"Malformed content.xml: {exc}") from exc

    nodes = root.xpath("//text:h | //text:p", namespaces={"text": _ODF_TEXT_NS})
    return squeeze_blank_lines("\n".join("".join(node.itertext()) for node in nodes))


class DefaultConverter:
    """pymupdf for PDF, python-docx for DOCX, content.xml for ODT, antiword for DOC."""

    def __init__(
        self,
        *,
        antiword_command: str = "antiword",
        antiword_timeout_seconds: float = DEFAULT_ANTIWORD_TIMEOUT_SECONDS,
    ) -> None:
        self._antiword_command = antiword_command
        self._antiword_timeout = antiword_timeout_seconds
        self._handlers: dict[str, Callable[[bytes], str]] = {
            "pdf": _pdf_to_text,
            "docx": _docx_to_text,
            "odt": _odt_to_text,
            "doc": self._doc_to_text,
        }

    @property
    def format_tags(self) -> list[str]:
        return sorted(self._handlers)

    def convert(self, payload: bytes, format_tag: str) -> str:
        handler = self._handlers.get(format_tag)
        if handler is None:
            raise ConversionFailure(f"No converter available for format {format_tag!r}")
        logger.debug("Converting %d bytes as %s", len(payload), format_tag)
        return handler(payload)

    def _doc_to_text(self, payload: bytes) -> str:
        with tempfile.TemporaryDirectory(prefix="readtext-doc-") as tmp:
            staged = Path(tmp) / "document.doc"
            staged.write_bytes(payload)
            try:
                completed = subprocess.run(
                    [self._antiword_command, "-m", "UTF-8.txt", "-w", "0", str(staged)],
                    capture_output=True,
                    timeout=self._antiword_timeout,
                    check=False,
                )
            except FileNotFoundError as exc:
                raise ConversionFailure(f"{self._antiword_command} is not installed or not in PATH") from exc
            except subprocess.TimeoutExpired as exc:
                raise ConversionFailure(f"{self._antiword_command} timed out after {int(self._antiword_timeout)}s") from exc

        if completed.returncode != 0:
            message = completed.stderr.decode("utf-8", errors="replace").strip()
            raise ConversionFailure(message or f"{self._antiword_command} exited with code {completed.returncode}")
        try:
            text = completed.stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConversionFailure(f"{self._antiword_command} produced non UTF-8 output: {exc}") from exc
        return squeeze_blank_lines(text)
