"""CLI command that reads a locator into a document table."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from dotenv import load_dotenv

from readtext.config import ReadtextOptions, ReadtextSettings
from readtext.errors import ReadtextError
from readtext.ingestion.ingestor import TextIngestor

logger = logging.getLogger(__name__)


def _split_names(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(name.strip() for name in raw.split(",") if name.strip())


def _field(raw: str | None) -> str | int | None:
    if raw is None:
        return None
    return int(raw) if raw.isdigit() else raw


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Read text files into one document table")
    parser.add_argument("--path", required=True, action="append", help="File, directory, glob, archive or URL")
    parser.add_argument("--text-field", help="Column/key (or 1-based column index) holding the text")
    parser.add_argument("--docid-field", help="Column/key holding the document id")
    parser.add_argument(
        "--docvarsfrom",
        default="none",
        choices=["none", "filenames", "filepaths"],
        help="Derive docvars from file names or paths",
    )
    parser.add_argument("--docvarnames", help="Comma-separated docvar names")
    parser.add_argument("--dvsep", default="_", help="Regular expression separating docvar tokens")
    parser.add_argument("--encoding", help="Encoding label for every source, or 'auto'")
    parser.add_argument("--sep", help="Field separator for delimited files")
    parser.add_argument("--no-header", action="store_true", help="Delimited files have no header row")
    parser.add_argument("--recursive", action="store_true", help="Descend into subdirectories")
    parser.add_argument("--ignore-missing", action="store_true", help="Skip locators that match nothing")
    parser.add_argument(
        "--collect-errors",
        action="store_true",
        help="Report per-source failures as warnings instead of aborting",
    )
    parser.add_argument(
        "--skip-docvar-mismatch",
        action="store_true",
        help="Skip sources whose file names do not split into the docvar names",
    )
    parser.add_argument("--workers", type=int, help="Parallel extraction workers")
    parser.add_argument("--timeout", type=float, help="URL fetch timeout in seconds")
    parser.add_argument("--format", default="json", choices=["json", "csv"], help="Output format")
    parser.add_argument("--output", help="Write output to this file instead of stdout")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    try:
        settings = ReadtextSettings.from_env()
    except ValueError as exc:
        print(f"Invalid environment: {exc}", file=sys.stderr)
        return 2

    locator = args.path[0] if len(args.path) == 1 else args.path
    try:
        options = ReadtextOptions(
            text_field=_field(args.text_field),
            docid_field=_field(args.docid_field),
            docvarsfrom=args.docvarsfrom,
            docvarnames=_split_names(args.docvarnames),
            dvsep=args.dvsep,
            encoding=args.encoding,
            recursive=args.recursive,
            ignore_missing=args.ignore_missing,
            fail_fast=not args.collect_errors,
            docvar_mismatch="skip" if args.skip_docvar_mismatch else "raise",
            workers=args.workers or settings.workers,
            timeout=args.timeout or settings.url_timeout_seconds,
            sep=args.sep,
            header=not args.no_header,
        )
        table = TextIngestor(default_encoding=settings.encoding).ingest(locator, options)
    except ReadtextError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if args.format == "csv":
        rendered = table.to_frame().to_csv(index=False)
    else:
        payload = {
            "path": args.path,
            "documents": len(table),
            "columns": table.columns,
            "rows": table.to_records(),
            "warnings": [
                {"source": item.source, "error_type": item.error_type, "message": item.message}
                for item in table.warnings
            ],
        }
        rendered = json.dumps(payload, ensure_ascii=False, indent=2, default=str) + "\n"

    if args.output:
        Path(args.output).write_text(rendered, encoding="utf-8")
        logger.info("Wrote %d document(s) to %s", len(table), args.output)
    else:
        sys.stdout.write(rendered)
    return 0 if not table.warnings else 1


if __name__ == "__main__":
    raise SystemExit(main())
