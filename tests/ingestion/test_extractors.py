from __future__ import annotations

from pathlib import Path

import pytest

from readtext.errors import ConfigurationError, ParseError
from readtext.ingestion.adapters.html_adapter import HTMLExtractor
from readtext.ingestion.adapters.json_adapter import JSONExtractor
from readtext.ingestion.adapters.tabular_adapter import TabularExtractor
from readtext.ingestion.adapters.txt_adapter import TXTExtractor
from readtext.ingestion.adapters.xml_adapter import XMLExtractor
from readtext.ingestion.ingestor import read_texts
from readtext.ingestion.models import ExtractionOptions, Source


def _source(name: str) -> Source:
    extension = "." + name.rsplit(".", 1)[-1].lower()
    return Source(identifier=name, path=Path(name), extension=extension, origin=name, encoding="utf-8")


def test_txt_extractor_returns_payload_verbatim() -> None:
    payload = "  line one\n\nline two  \n"

    records = TXTExtractor().extract(_source("a.txt"), payload, ExtractionOptions())

    assert len(records) == 1
    assert records[0].text == payload
    assert records[0].docvars == {}


def test_csv_rows_become_records_in_file_order(tmp_path: Path) -> None:
    sample = tmp_path / "speeches.csv"
    sample.write_text(
        'speech,author,year\n"Hello, world",Ann,2001\nSecond speech,Bob,2002\nThird,Cy,2003\n',
        encoding="utf-8",
    )

    table = read_texts(str(sample), text_field="speech")

    assert len(table) == 3
    assert table.columns == ["doc_id", "text", "author", "year"]
    assert table.column("doc_id") == ["speeches.csv.1", "speeches.csv.2", "speeches.csv.3"]
    assert table.column("text") == ["Hello, world", "Second speech", "Third"]
    assert table.column("author") == ["Ann", "Bob", "Cy"]
    assert table.column("year") == ["2001", "2002", "2003"]


def test_tsv_uses_tab_separator_by_default() -> None:
    payload = "id\ttext\tlang\nx1\tbonjour\tfr\nx2\thello\ten\n"

    records = TabularExtractor().extract(_source("data.tsv"), payload, ExtractionOptions(text_field="text", docid_field="id"))

    assert [(record.doc_id, record.text, record.docvars) for record in records] == [
        ("x1", "bonjour", {"lang": "fr"}),
        ("x2", "hello", {"lang": "en"}),
    ]


def test_tabular_text_field_may_be_a_column_index() -> None:
    payload = "a;b\n1;first\n2;second\n"

    records = TabularExtractor().extract(_source("data.csv"), payload, ExtractionOptions(text_field=2, sep=";"))

    assert [record.text for record in records] == ["first", "second"]
    assert [record.docvars for record in records] == [{"a": "1"}, {"a": "2"}]


def test_tabular_without_header_uses_positional_names() -> None:
    payload = "alpha,one\nbeta,two\n"

    records = TabularExtractor().extract(_source("raw.csv"), payload, ExtractionOptions(text_field="V2", header=False))

    assert [record.text for record in records] == ["one", "two"]
    assert records[0].docvars == {"V1": "alpha"}


def test_tabular_missing_text_field_is_configuration_error() -> None:
    payload = "a,b\n1,2\n"

    with pytest.raises(ConfigurationError, match="text_field is required"):
        TabularExtractor().extract(_source("data.csv"), payload, ExtractionOptions())

    with pytest.raises(ConfigurationError, match="'body' not found"):
        TabularExtractor().extract(_source("data.csv"), payload, ExtractionOptions(text_field="body"))


def test_tabular_ragged_row_is_parse_error() -> None:
    payload = "text,year\nfine,2001\nbroken\n"

    with pytest.raises(ParseError, match="Line 3: expected 2 fields, got 1") as excinfo:
        TabularExtractor().extract(_source("data.csv"), payload, ExtractionOptions(text_field="text"))

    assert excinfo.value.source == "data.csv"


def test_json_array_of_objects(tmp_path: Path) -> None:
    sample = tmp_path / "posts.json"
    sample.write_text(
        '[{"body": "first", "user": "ann", "likes": 3}, {"body": "second", "user": "bob"}]',
        encoding="utf-8",
    )

    table = read_texts(str(sample), text_field="body")

    assert table.column("doc_id") == ["posts.json.1", "posts.json.2"]
    assert table.column("text") == ["first", "second"]
    assert table.column("user") == ["ann", "bob"]
    assert table.column("likes") == [3, None]


def test_json_single_object_is_one_record() -> None:
    records = JSONExtractor().extract(
        _source("one.json"),
        '{"text": "only", "meta": {"k": 1}}',
        ExtractionOptions(text_field="text"),
    )

    assert len(records) == 1
    assert records[0].text == "only"
    assert records[0].docvars == {"meta": {"k": 1}}


def test_json_lines_payload_is_detected() -> None:
    payload = '{"text": "a", "n": 1}\n\n{"text": "b", "n": 2}\n'

    records = JSONExtractor().extract(_source("stream.json"), payload, ExtractionOptions(text_field="text"))

    assert [record.text for record in records] == ["a", "b"]


def test_malformed_json_names_source_and_position() -> None:
    with pytest.raises(ParseError, match="Malformed JSON at line 1") as excinfo:
        JSONExtractor().extract(_source("bad.json"), '{"text": ', ExtractionOptions(text_field="text"))

    assert excinfo.value.source == "bad.json"


def test_json_missing_text_key_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="missing in element 2"):
        JSONExtractor().extract(
            _source("x.json"),
            '[{"text": "a"}, {"other": "b"}]',
            ExtractionOptions(text_field="text"),
        )


def test_json_non_object_element_is_parse_error() -> None:
    with pytest.raises(ParseError, match="Element 1 is not a JSON object"):
        JSONExtractor().extract(_source("x.json"), '["a", "b"]', ExtractionOptions(text_field="text"))


def test_xml_text_nodes_and_root_attributes(tmp_path: Path) -> None:
    sample = tmp_path / "doc.xml"
    sample.write_text(
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<doc lang="en" year="2001">\n'
        "  <title>Hello</title>\n"
        "  <body><p>One   two</p>\n<p>three</p></body>\n"
        "</doc>\n",
        encoding="utf-8",
    )

    table = read_texts(str(sample))

    assert table.column("text") == ["Hello\nOne two\nthree"]
    assert table.column("lang") == ["en"]
    assert table.column("year") == ["2001"]


def test_xml_without_text_still_yields_one_record() -> None:
    records = XMLExtractor().extract(_source("empty.xml"), '<root id="7"/>', ExtractionOptions())

    assert len(records) == 1
    assert records[0].text == ""
    assert records[0].docvars == {"id": "7"}


def test_malformed_xml_is_parse_error() -> None:
    with pytest.raises(ParseError, match="Malformed XML"):
        XMLExtractor().extract(_source("bad.xml"), "<root><open></root>", ExtractionOptions())


def test_html_blocks_and_title() -> None:
    payload = (
        "<html><head><title>Page  Title</title><script>var x = 1;</script></head>"
        "<body><h1>Head</h1><p>Para <b>bold</b> text</p><ul><li>item</li></ul></body></html>"
    )

    records = HTMLExtractor().extract(_source("page.html"), payload, ExtractionOptions())

    assert records[0].text == "Head\nPara bold text\nitem"
    assert records[0].docvars == {"title": "Page Title"}
