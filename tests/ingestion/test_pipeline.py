from __future__ import annotations

from pathlib import Path
import zipfile

import pytest

from readtext.config import ReadtextOptions
from readtext.errors import ConfigurationError, EncodingError, SourceResolutionError, UnsupportedFormatError
from readtext.ingestion.ingestor import TextIngestor, detect_encoding, read_texts
from readtext.ingestion.models import DocumentRecord, ExtractionOptions, Source


class _UpperExtractor:
    format_name = "upper"
    binary = False
    row_based = False

    def extract(self, source: Source, payload: str | bytes, options: ExtractionOptions) -> list[DocumentRecord]:
        return [DocumentRecord(text=str(payload).upper(), docvars={"marker": "md"})]


def _corpus(root: Path) -> None:
    root.mkdir(parents=True, exist_ok=True)
    (root / "a.txt").write_text("first document", encoding="utf-8")
    (root / "b.csv").write_text("text,score\nrow one,1\nrow two,2\n", encoding="utf-8")
    (root / "c.json").write_text('[{"text": "json text", "lang": "en"}]', encoding="utf-8")


def test_mixed_formats_union_docvar_columns(tmp_path: Path) -> None:
    _corpus(tmp_path)

    table = read_texts(str(tmp_path), text_field="text")

    assert table.columns == ["doc_id", "text", "score", "lang"]
    assert table.column("doc_id") == ["a.txt", "b.csv.1", "b.csv.2", "c.json.1"]
    assert table.column("score") == [None, "1", "2", None]
    assert table.column("lang") == [None, None, None, "en"]


def test_repeated_calls_render_identical_json(tmp_path: Path) -> None:
    _corpus(tmp_path)

    first = read_texts(str(tmp_path), text_field="text").to_json()
    second = read_texts(str(tmp_path), text_field="text").to_json()

    assert first == second


def test_zip_and_directory_produce_the_same_table(tmp_path: Path) -> None:
    corpus = tmp_path / "corpus"
    _corpus(corpus)
    archive = tmp_path / "corpus.zip"
    with zipfile.ZipFile(archive, "w") as handle:
        for path in sorted(corpus.iterdir()):
            handle.write(path, arcname=path.name)

    from_dir = read_texts(str(corpus), text_field="text")
    from_zip = read_texts(str(archive), text_field="text")

    assert from_zip.to_json() == from_dir.to_json()


def test_multiple_locators_keep_their_order(tmp_path: Path) -> None:
    (tmp_path / "z.txt").write_text("zed", encoding="utf-8")
    (tmp_path / "a.txt").write_text("ay", encoding="utf-8")

    table = read_texts([str(tmp_path / "z.txt"), str(tmp_path / "a.txt")])

    assert table.column("text") == ["zed", "ay"]


def test_unsupported_format_names_source(tmp_path: Path) -> None:
    (tmp_path / "image.bmp").write_bytes(b"BM")

    with pytest.raises(UnsupportedFormatError, match=r"\.bmp") as excinfo:
        read_texts(str(tmp_path))

    assert excinfo.value.source == "image.bmp"


def test_collect_mode_reports_failures_and_keeps_other_rows(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("good", encoding="utf-8")
    (tmp_path / "b.bmp").write_bytes(b"BM")
    (tmp_path / "c.txt").write_bytes(b"caf\xe9")

    table = read_texts(str(tmp_path), fail_fast=False)

    assert table.column("doc_id") == ["a.txt"]
    assert [(item.source, item.error_type) for item in table.warnings] == [
        ("b.bmp", "UnsupportedFormatError"),
        ("c.txt", "EncodingError"),
    ]


def test_parallel_extraction_preserves_discovery_order(tmp_path: Path) -> None:
    for index in range(12):
        (tmp_path / f"doc{index:02d}.txt").write_text(f"text {index}", encoding="utf-8")

    sequential = read_texts(str(tmp_path))
    parallel = read_texts(str(tmp_path), workers=4)

    assert parallel.to_json() == sequential.to_json()
    assert parallel.column("doc_id")[0] == "doc00.txt"


def test_parallel_fail_fast_raises_first_error(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("fine", encoding="utf-8")
    (tmp_path / "b.txt").write_bytes(b"\xff\xfe\xfa")

    with pytest.raises(EncodingError) as excinfo:
        read_texts(str(tmp_path), workers=2)

    assert excinfo.value.source == "b.txt"


def test_registered_extractor_handles_new_extension(tmp_path: Path) -> None:
    (tmp_path / "notes.md").write_text("# heading", encoding="utf-8")
    (tmp_path / "plain.txt").write_text("plain", encoding="utf-8")
    ingestor = TextIngestor()

    ingestor.register_extractor("md", _UpperExtractor())
    table = ingestor.ingest(str(tmp_path))

    assert ".md" in ingestor.registry.extensions
    assert table.rows == [
        {"doc_id": "notes.md", "text": "# HEADING", "marker": "md"},
        {"doc_id": "plain.txt", "text": "plain", "marker": None},
    ]


def test_register_rejects_objects_without_extract() -> None:
    with pytest.raises(TypeError, match="Extractor protocol"):
        TextIngestor().register_extractor(".md", object())  # type: ignore[arg-type]


def test_extension_matching_is_case_insensitive(tmp_path: Path) -> None:
    (tmp_path / "LOUD.TXT").write_text("upper case name", encoding="utf-8")

    table = read_texts(str(tmp_path))

    assert table.rows[0] == {"doc_id": "LOUD.TXT", "text": "upper case name"}


def test_duplicate_doc_ids_are_rejected(tmp_path: Path) -> None:
    (tmp_path / "rows.csv").write_text("id,text\nx,one\nx,two\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Duplicate doc_id 'x'"):
        read_texts(str(tmp_path), text_field="text", docid_field="id")


def test_unknown_option_is_a_configuration_error(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("x", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Unrecognized options: colour"):
        read_texts(str(tmp_path), colour="blue")


def test_staging_is_released_after_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    staging_root = tmp_path / "staging"
    staging_root.mkdir()
    monkeypatch.setattr("tempfile.tempdir", str(staging_root))
    archive = tmp_path / "bundle.zip"
    with zipfile.ZipFile(archive, "w") as handle:
        handle.writestr("a.txt", "fine")
        handle.writestr("b.bmp", "BM")

    with pytest.raises(UnsupportedFormatError):
        read_texts(str(archive))

    assert list(staging_root.iterdir()) == []


def test_missing_locator_in_list_raises(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("x", encoding="utf-8")

    with pytest.raises(SourceResolutionError, match="matched no files"):
        read_texts([str(tmp_path / "a.txt"), str(tmp_path / "missing.txt")])


def test_to_frame_keeps_missing_docvars_as_none(tmp_path: Path) -> None:
    _corpus(tmp_path)

    frame = read_texts(str(tmp_path), text_field="text").to_frame()

    assert list(frame.columns) == ["doc_id", "text", "score", "lang"]
    assert frame.loc[0, "score"] is None
    assert frame.loc[3, "lang"] == "en"


def test_ingestor_accepts_options_object(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_bytes("ünïcode".encode("latin-1"))

    table = TextIngestor().ingest(str(tmp_path), ReadtextOptions(encoding="latin-1"))

    assert table.column("text") == ["ünïcode"]


def test_boundary_default_encoding_is_used_when_none_given(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_bytes("ünïcode".encode("cp1252"))

    table = read_texts(str(tmp_path), default_encoding="cp1252")

    assert table.column("text") == ["ünïcode"]


def test_detect_encoding_skips_binary_and_unsupported_sources(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("plain ascii text for detection", encoding="utf-8")
    (tmp_path / "b.pdf").write_bytes(b"%PDF-1.7")
    (tmp_path / "c.bmp").write_bytes(b"BM")

    detected = detect_encoding(str(tmp_path))

    assert list(detected) == ["a.txt"]
    assert detected["a.txt"] is not None
