"""Routing entrypoint: expand, decode, extract and assemble in one call."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from contextlib import ExitStack
import logging
from pathlib import Path
from typing import Any, Sequence

from readtext.config import DEFAULT_ENCODING, ReadtextOptions
from readtext.errors import EncodingError, ReadtextError, SourceResolutionError
from readtext.ingestion.adapters import build_default_extractors
from readtext.ingestion.adapters.base import Extractor
from readtext.ingestion.assembler import ResultTable, SourceExtraction, assemble
from readtext.ingestion.converters import DocumentConverter
from readtext.ingestion.dispatcher import FormatRegistry
from readtext.ingestion.docvars import DocvarSynthesizer
from readtext.ingestion.encoding import EncodingResolver, decode_payload, detect_payload_encoding
from readtext.ingestion.models import ExtractionOptions, Source, SourceFailure
from readtext.ingestion.sources import SourceExpander

logger = logging.getLogger(__name__)

Locator = str | Path | Sequence[str | Path]


def _failure(source: Source, exc: ReadtextError) -> SourceFailure:
    return SourceFailure(source=source.identifier, error_type=type(exc).__name__, message=str(exc))


class TextIngestor:
    """Resolve sources, dispatch them to extractors and assemble the result table."""

    def __init__(
        self,
        *,
        default_encoding: str = DEFAULT_ENCODING,
        converter: DocumentConverter | None = None,
        registry: FormatRegistry | None = None,
    ) -> None:
        self._default_encoding = default_encoding
        self._registry = registry or FormatRegistry(build_default_extractors(converter))

    @property
    def registry(self) -> FormatRegistry:
        return self._registry

    def register_extractor(self, extension: str, extractor: Extractor) -> None:
        """Register an extractor for an extension without touching existing ones."""

        self._registry.register(extension, extractor)

    def ingest(self, locator: Locator, options: ReadtextOptions | None = None) -> ResultTable:
        """Ingest every source behind ``locator`` into one ResultTable."""

        options = options or ReadtextOptions()
        extraction_options = ExtractionOptions(
            text_field=options.text_field,
            docid_field=options.docid_field,
            sep=options.sep,
            header=options.header,
        )

        with ExitStack() as stack:
            expander = SourceExpander(
                stack,
                recursive=options.recursive,
                ignore_missing=options.ignore_missing,
                timeout=options.timeout,
            )
            expanded = expander.expand(locator)
            resolved = EncodingResolver(options.encoding, default=self._default_encoding).assign_each(expanded)

            failures: dict[int, SourceFailure] = {}
            sources: list[Source] = []
            for position, (source, outcome) in enumerate(zip(expanded, resolved)):
                if isinstance(outcome, EncodingError):
                    if options.fail_fast:
                        raise outcome
                    logger.warning("Encoding resolution failed, continuing: %s", outcome)
                    failures[position] = _failure(source, outcome)
                    sources.append(source)
                else:
                    sources.append(outcome)

            synthesized = DocvarSynthesizer(options).synthesize(sources)

            jobs: list[tuple[int, Source, dict[str, Any]]] = []
            for position, (source, docvars) in enumerate(zip(sources, synthesized.values)):
                if position in failures:
                    continue
                if docvars is None:
                    failures[position] = synthesized.failures[position]
                    continue
                jobs.append((position, source, docvars))

            extracted = self._run(jobs, extraction_options, options, failures)

        ordered = [extracted[position] for position in sorted(extracted)]
        warnings = [failures[position] for position in sorted(failures)]
        table = assemble(ordered, warnings=warnings)
        logger.info(
            "Ingested %d document(s) from %d source(s), %d warning(s)",
            len(table),
            len(sources),
            len(warnings),
        )
        return table

    def detect_encodings(
        self,
        locator: Locator,
        *,
        recursive: bool = False,
        timeout: float = 30.0,
    ) -> dict[str, str | None]:
        """Detected encoding per text-bearing source, in discovery order."""

        detected: dict[str, str | None] = {}
        with ExitStack() as stack:
            sources = SourceExpander(stack, recursive=recursive, timeout=timeout).expand(locator)
            for source in sources:
                if not self._registry.supports(source.extension or "."):
                    logger.debug("Skipping unsupported source %s", source.identifier)
                    continue
                if self._registry.resolve(source).binary:
                    continue
                detected[source.identifier] = detect_payload_encoding(_read(source))
        return detected

    def _run(
        self,
        jobs: list[tuple[int, Source, dict[str, Any]]],
        extraction_options: ExtractionOptions,
        options: ReadtextOptions,
        failures: dict[int, SourceFailure],
    ) -> dict[int, SourceExtraction]:
        results: dict[int, SourceExtraction] = {}

        if options.workers == 1 or len(jobs) <= 1:
            for position, source, docvars in jobs:
                try:
                    results[position] = self._extract_one(source, docvars, extraction_options)
                except ReadtextError as exc:
                    if options.fail_fast:
                        raise
                    logger.warning("Extraction failed, continuing: %s", exc)
                    failures[position] = _failure(source, exc)
            return results

        pool = ThreadPoolExecutor(max_workers=options.workers, thread_name_prefix="readtext")
        try:
            futures: dict[Future[SourceExtraction], tuple[int, Source]] = {
                pool.submit(self._extract_one, source, docvars, extraction_options): (position, source)
                for position, source, docvars in jobs
            }
            for future in as_completed(futures):
                position, source = futures[future]
                try:
                    results[position] = future.result()
                except ReadtextError as exc:
                    if options.fail_fast:
                        for pending in futures:
                            pending.cancel()
                        raise
                    logger.warning("Extraction failed, continuing: %s", exc)
                    failures[position] = _failure(source, exc)
        finally:
            pool.shutdown(wait=True, cancel_futures=True)
        return results

    def _extract_one(
        self,
        source: Source,
        docvars: dict[str, Any],
        extraction_options: ExtractionOptions,
    ) -> SourceExtraction:
        extractor = self._registry.resolve(source)
        raw = _read(source)
        payload: str | bytes = raw if extractor.binary else decode_payload(source, raw)
        records = extractor.extract(source, payload, extraction_options)
        return SourceExtraction(source=source, records=records, docvars=docvars, row_based=extractor.row_based)


def _read(source: Source) -> bytes:
    try:
        return source.read_bytes()
    except OSError as exc:
        raise SourceResolutionError(source.identifier, f"Failed to read source file: {exc}") from exc


def read_texts(
    locator: Locator,
    *,
    default_encoding: str = DEFAULT_ENCODING,
    converter: DocumentConverter | None = None,
    **options: Any,
) -> ResultTable:
    """Functional entry point; unrecognized keyword options raise ConfigurationError."""

    resolved = ReadtextOptions.from_mapping(options)
    ingestor = TextIngestor(default_encoding=default_encoding, converter=converter)
    return ingestor.ingest(locator, resolved)


def detect_encoding(locator: Locator, *, recursive: bool = False, timeout: float = 30.0) -> dict[str, str | None]:
    """Guess the encoding of every text-bearing source behind ``locator``."""

    return TextIngestor().detect_encodings(locator, recursive=recursive, timeout=timeout)
