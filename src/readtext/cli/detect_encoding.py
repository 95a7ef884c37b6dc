"""CLI command that reports the detected encoding of each text source."""

from __future__ import annotations

import argparse
import json
import sys

from dotenv import load_dotenv

from readtext.config import ReadtextSettings
from readtext.errors import ReadtextError
from readtext.ingestion.ingestor import TextIngestor


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Detect the encoding of text sources")
    parser.add_argument("--path", required=True, help="File, directory, glob, archive or URL")
    parser.add_argument("--recursive", action="store_true", help="Descend into subdirectories")
    args = parser.parse_args(argv)

    try:
        settings = ReadtextSettings.from_env()
        detected = TextIngestor(default_encoding=settings.encoding).detect_encodings(
            args.path,
            recursive=args.recursive,
            timeout=settings.url_timeout_seconds,
        )
    except ValueError as exc:
        print(f"Invalid environment: {exc}", file=sys.stderr)
        return 2
    except ReadtextError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    print(json.dumps({"path": args.path, "encodings": detected}, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
