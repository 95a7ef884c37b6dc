"""Expand locators (paths, globs, archives, URLs) into ordered local sources.

Archives and URL bodies are staged into temporary directories registered on a
caller-owned ``ExitStack`` so cleanup happens on every exit path. Everything
downstream only ever sees ordinary local files.
"""

from __future__ import annotations

from contextlib import ExitStack
import logging
from pathlib import Path, PurePosixPath
import shutil
import tarfile
import tempfile
from typing import Iterable, Sequence
from urllib.parse import unquote, urlparse
import zipfile

import requests

from readtext.errors import SourceResolutionError
from readtext.ingestion.models import Source

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSIONS = (".tar.gz", ".tar.bz2", ".tgz", ".tbz2", ".zip", ".tar")
_COMPOUND_EXTENSIONS = (".tar.gz", ".tar.bz2")
_GLOB_CHARS = frozenset("*?[")
_SKIPPED_NAMES = {"__MACOSX", "Thumbs.db"}

_CONTENT_TYPE_EXTENSIONS: dict[str, str] = {
    "text/plain": ".txt",
    "text/csv": ".csv",
    "text/tab-separated-values": ".tsv",
    "application/json": ".json",
    "application/x-ndjson": ".ndjson",
    "application/xml": ".xml",
    "text/xml": ".xml",
    "text/html": ".html",
    "application/pdf": ".pdf",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
    "application/vnd.oasis.opendocument.text": ".odt",
    "application/zip": ".zip",
    "application/x-zip-compressed": ".zip",
    "application/x-tar": ".tar",
    "application/gzip": ".tar.gz",
    "application/x-gzip": ".tar.gz",
    "application/x-bzip2": ".tar.bz2",
}


def split_extension(name: str) -> str:
    """Return the lower-case extension of ``name``, matching compound archive suffixes first."""

    lowered = name.lower()
    for compound in _COMPOUND_EXTENSIONS:
        if lowered.endswith(compound):
            return compound
    return PurePosixPath(lowered).suffix


def is_archive(name: str) -> bool:
    return split_extension(name) in ARCHIVE_EXTENSIONS


def is_url(locator: str) -> bool:
    scheme = urlparse(locator).scheme.lower()
    return scheme in {"http", "https"}


def _has_glob(part: str) -> bool:
    return any(char in _GLOB_CHARS for char in part)


def _is_skipped(relative: PurePosixPath) -> bool:
    return any(part.startswith(".") or part in _SKIPPED_NAMES for part in relative.parts)


def _ordered(root: Path, paths: Iterable[Path]) -> list[tuple[PurePosixPath, Path]]:
    """Depth-first lexicographic order: sorting by path components is exactly that walk."""

    entries: list[tuple[PurePosixPath, Path]] = []
    for path in paths:
        if not path.is_file():
            continue
        relative = PurePosixPath(path.relative_to(root).as_posix())
        if _is_skipped(relative):
            continue
        entries.append((relative, path))
    entries.sort(key=lambda entry: entry[0].parts)
    return entries


class SourceExpander:
    """Resolve locators into concrete sources in deterministic discovery order."""

    def __init__(
        self,
        stack: ExitStack,
        *,
        recursive: bool = False,
        ignore_missing: bool = False,
        timeout: float = 30.0,
    ) -> None:
        self._stack = stack
        self._recursive = recursive
        self._ignore_missing = ignore_missing
        self._timeout = timeout

    def expand(self, locator: str | Path | Sequence[str | Path]) -> list[Source]:
        """Expand one locator or a sequence of locators, preserving their order."""

        if isinstance(locator, (str, Path)):
            locators: list[str | Path] = [locator]
        else:
            locators = list(locator)

        sources: list[Source] = []
        for item in locators:
            sources.extend(self._expand_one(item))
        logger.debug("Expanded %d locator(s) into %d source(s)", len(locators), len(sources))
        return sources

    def _expand_one(self, locator: str | Path) -> list[Source]:
        text = str(locator)
        if isinstance(locator, str) and is_url(text):
            return self._expand_url(text)

        path = Path(text).expanduser()
        if any(_has_glob(part) for part in path.parts):
            found = self._expand_glob(path, origin=text)
        elif path.is_dir():
            found = self._expand_directory(path, origin=text, prefix="", recursive=self._recursive)
        elif path.is_file():
            found = self._from_file(path, identifier=path.name, origin=text, nested=False)
        else:
            found = []

        if not found:
            return self._missing(text)
        return found

    def _missing(self, locator: str) -> list[Source]:
        if self._ignore_missing:
            logger.warning("Locator matched no files, skipping: %s", locator)
            return []
        raise SourceResolutionError(locator, "Locator matched no files")

    def _expand_glob(self, pattern: Path, *, origin: str) -> list[Source]:
        parts = pattern.parts
        split_at = next(index for index, part in enumerate(parts) if _has_glob(part))
        root = Path(*parts[:split_at]) if split_at else Path(".")
        remainder = "/".join(parts[split_at:])
        if self._recursive and "**" not in remainder:
            remainder = f"**/{remainder}"
        if not root.is_dir():
            return []

        sources: list[Source] = []
        for relative, path in _ordered(root, root.glob(remainder)):
            sources.extend(self._from_file(path, identifier=relative.as_posix(), origin=origin))
        return sources

    def _expand_directory(self, root: Path, *, origin: str, prefix: str, recursive: bool) -> list[Source]:
        candidates = root.rglob("*") if recursive else root.iterdir()
        sources: list[Source] = []
        for relative, path in _ordered(root, candidates):
            sources.extend(self._from_file(path, identifier=prefix + relative.as_posix(), origin=origin))
        return sources

    def _from_file(self, path: Path, *, identifier: str, origin: str, nested: bool = True) -> list[Source]:
        if is_archive(path.name):
            prefix = f"{identifier}/" if nested else ""
            return self._expand_archive(path, origin=origin, prefix=prefix)
        return [Source(identifier=identifier, path=path, extension=split_extension(path.name), origin=origin)]

    def _stage_directory(self) -> Path:
        return Path(self._stack.enter_context(tempfile.TemporaryDirectory(prefix="readtext-")))

    def _expand_archive(self, archive: Path, *, origin: str, prefix: str) -> list[Source]:
        staging = self._stage_directory()
        try:
            if split_extension(archive.name) == ".zip":
                _extract_zip(archive, staging)
            else:
                _extract_tar(archive, staging)
        except (zipfile.BadZipFile, tarfile.TarError, EOFError, OSError) as exc:
            raise SourceResolutionError(str(archive), f"Failed to unpack archive: {exc}") from exc

        logger.debug("Staged archive %s into %s", archive, staging)
        return self._expand_directory(staging, origin=origin, prefix=prefix, recursive=True)

    def _expand_url(self, url: str) -> list[Source]:
        try:
            response = requests.get(url, timeout=self._timeout)
            response.raise_for_status()
        except requests.Timeout as exc:
            raise SourceResolutionError(url, f"Timed out after {self._timeout}s") from exc
        except requests.RequestException as exc:
            raise SourceResolutionError(url, f"Failed to fetch URL: {exc}") from exc

        name = unquote(PurePosixPath(urlparse(url).path).name)
        extension = split_extension(name)
        if not extension:
            content_type = response.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
            extension = _CONTENT_TYPE_EXTENSIONS.get(content_type, "")
            if not extension:
                raise SourceResolutionError(url, f"Cannot infer format from URL or Content-Type {content_type!r}")
            name = f"{name or 'download'}{extension}"

        staged = self._stage_directory() / name
        staged.write_bytes(response.content)
        logger.debug("Fetched %s (%d bytes)", url, len(response.content))

        if is_archive(name):
            return self._expand_archive(staged, origin=url, prefix="")
        return [Source(identifier=name, path=staged, extension=extension, origin=url)]


def _safe_target(staging: Path, member_name: str) -> Path | None:
    relative = PurePosixPath(member_name.replace("\\", "/"))
    if relative.is_absolute() or ".." in relative.parts:
        raise SourceResolutionError(member_name, "Archive member escapes the staging directory")
    if not relative.parts:
        return None
    target = staging.joinpath(*relative.parts)
    target.parent.mkdir(parents=True, exist_ok=True)
    return target


def _extract_zip(archive: Path, staging: Path) -> None:
    with zipfile.ZipFile(archive) as handle:
        for info in handle.infolist():
            if info.is_dir():
                continue
            target = _safe_target(staging, info.filename)
            if target is None:
                continue
            with handle.open(info) as reader, target.open("wb") as writer:
                shutil.copyfileobj(reader, writer)


def _extract_tar(archive: Path, staging: Path) -> None:
    with tarfile.open(archive, "r:*") as handle:
        for member in handle.getmembers():
            if not member.isfile():
                continue
            target = _safe_target(staging, member.name)
            if target is None:
                continue
            reader = handle.extractfile(member)
            if reader is None:
                continue
            with reader, target.open("wb") as writer:
                shutil.copyfileobj(reader, writer)
