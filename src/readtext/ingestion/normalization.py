"""Text normalization helpers used by markup extractors."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def normalize_whitespace(text: str) -> str:
    """Collapse repeated whitespace and trim boundaries."""

    return _WHITESPACE_RE.sub(" ", text).strip()


def join_lines(parts: list[str]) -> str:
    """Join normalized fragments one per line, dropping empty ones."""

    cleaned = [normalize_whitespace(part) for part in parts]
    return "\n".join(part for part in cleaned if part)


def squeeze_blank_lines(text: str) -> str:
    """Limit runs of blank lines produced by converters to one."""

    return _BLANK_LINES_RE.sub("\n\n", text).strip("\n")
