"""Encoding resolution and strict decoding of source payloads.

Every source gets exactly one label before any payload is read:

* ``None``            the boundary default passed in by the caller
* ``"utf-8"``         one label shared by every source
* ``["utf-8", ...]``  one label per source, by discovery position
* ``{"a.txt": ...}``  one label per source, by identifier (or base name)

The label ``"auto"`` defers to charset detection on the payload. Decoding is
always strict: invalid byte sequences raise instead of producing U+FFFD.
"""

from __future__ import annotations

import codecs
import logging
from typing import Mapping, Sequence

from charset_normalizer import from_bytes

from readtext.errors import EncodingError
from readtext.ingestion.models import Source

logger = logging.getLogger(__name__)

AUTO_ENCODING = "auto"

_UTF8_NAMES = {"utf-8", "utf_8"}


def canonical_label(label: str, *, source: str) -> str:
    """Return the codec name for ``label`` or raise EncodingError."""

    if label.lower() == AUTO_ENCODING:
        return AUTO_ENCODING
    try:
        info = codecs.lookup(label)
    except LookupError as exc:
        raise EncodingError(source, "Unsupported encoding label", label=label) from exc
    # rot13, base64, hex and friends are bytes/str transforms, not charsets
    if not getattr(info, "_is_text_encoding", True):
        raise EncodingError(source, "Unsupported encoding label", label=label)
    return info.name


def detect_payload_encoding(payload: bytes) -> str | None:
    """Best-effort charset detection; None when nothing plausible is found."""

    if not payload:
        return "utf-8"
    best = from_bytes(payload).best()
    if best is None or not best.encoding:
        return None
    return codecs.lookup(best.encoding).name


class EncodingResolver:
    """Assign and apply one encoding label per source."""

    def __init__(
        self,
        spec: str | Sequence[str] | Mapping[str, str] | None,
        *,
        default: str,
    ) -> None:
        if spec is not None and not isinstance(spec, (str, Mapping)):
            spec = list(spec)
        self._spec = spec
        self._default = canonical_label(default, source="<default>")

    def assign(self, sources: Sequence[Source]) -> list[Source]:
        """Return sources tagged with their validated encoding label."""

        assigned: list[Source] = []
        for item in self.assign_each(sources):
            if isinstance(item, EncodingError):
                raise item
            assigned.append(item)
        return assigned

    def assign_each(self, sources: Sequence[Source]) -> list[Source | EncodingError]:
        """Per-source outcome: the tagged source, or the error for that source alone.

        A positional list whose length differs from the source count concerns the
        whole call and is raised immediately.
        """

        if isinstance(self._spec, list):
            self._check_length(self._spec, sources)

        outcomes: list[Source | EncodingError] = []
        for position, source in enumerate(sources):
            try:
                outcomes.append(source.with_encoding(self._label_for(source, position)))
            except EncodingError as exc:
                outcomes.append(exc)
        return outcomes

    @staticmethod
    def _check_length(labels: list[str], sources: Sequence[Source]) -> None:
        if len(labels) < len(sources):
            missing = sources[len(labels)]
            raise EncodingError(
                missing.identifier,
                f"Encoding list has {len(labels)} labels for {len(sources)} sources",
            )
        if len(labels) > len(sources):
            raise EncodingError(
                "<encoding>",
                f"Encoding list has {len(labels)} labels for only {len(sources)} sources",
            )

    def _label_for(self, source: Source, position: int) -> str:
        spec = self._spec
        if spec is None:
            label = self._default
        elif isinstance(spec, str):
            label = spec
        elif isinstance(spec, Mapping):
            label = spec.get(source.identifier)
            if label is None:
                label = spec.get(source.name)
            if label is None:
                raise EncodingError(source.identifier, "No encoding declared for source")
        else:
            label = spec[position]
        return canonical_label(label, source=source.identifier)


def decode_payload(source: Source, payload: bytes) -> str:
    """Decode ``payload`` strictly with the label assigned to ``source``."""

    label = source.encoding
    if label is None:
        raise EncodingError(source.identifier, "Source has no resolved encoding")

    if label == AUTO_ENCODING:
        detected = detect_payload_encoding(payload)
        if detected is None:
            raise EncodingError(source.identifier, "Could not detect encoding", label=AUTO_ENCODING)
        logger.debug("Detected encoding %s for %s", detected, source.identifier)
        label = detected

    codec = "utf-8-sig" if label in _UTF8_NAMES else label
    try:
        return payload.decode(codec)
    except LookupError as exc:
        raise EncodingError(source.identifier, "Unsupported encoding label", label=label) from exc
    except UnicodeDecodeError as exc:
        raise EncodingError(
            source.identifier,
            f"Invalid byte sequence at offset {exc.start}",
            label=label,
        ) from exc
