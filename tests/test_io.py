from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pandas as pd
import pytest

from catalog_export.errors import FileReadError, InvalidFileFormat
from catalog_export.io import (
    as_file_source,
    detect_format,
    parse_csv,
    read_csv_rows,
    read_source,
    read_table,
    read_xlsx_rows,
    write_bytes,
    write_json,
)
from catalog_export.models import BufferSource, BytesSource, PathSource

XlsxFactory = Callable[..., bytes]

# ── detect_format ────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("products.csv", "csv"),
        ("products.CSV", "csv"),
        ("products.xlsx", "xlsx"),
        ("Products.XLSX", "xlsx"),
        ("data.txt", None),
        ("products.xls", None),
        ("csv", None),
        ("", None),
    ],
)
def test_detect_format_uses_case_insensitive_suffix(filename: str, expected: str | None) -> None:
    assert detect_format(filename) == expected


# ── parse_csv ────────────────────────────────────────────────────


def test_parse_csv_splits_fields_and_records() -> None:
    assert parse_csv("a,b,c\n1,2,3\n") == [["a", "b", "c"], ["1", "2", "3"]]


def test_parse_csv_accepts_crlf_and_bare_cr() -> None:
    assert parse_csv("a,b\r\n1,2\r3,4") == [["a", "b"], ["1", "2"], ["3", "4"]]


def test_parse_csv_keeps_last_record_without_newline() -> None:
    assert parse_csv("a,b\n1,2") == [["a", "b"], ["1", "2"]]


def test_parse_csv_skips_blank_lines() -> None:
    assert parse_csv("a,b\n\n\n1,2\n\n") == [["a", "b"], ["1", "2"]]


def test_parse_csv_keeps_rows_of_empty_fields() -> None:
    assert parse_csv("a,b\n,\n") == [["a", "b"], ["", ""]]


def test_parse_csv_quoted_delimiters_and_terminators() -> None:
    content = 'name,body\n"Shirt, blue","line one\nline two\r\nline three"\n'

    rows = parse_csv(content)

    assert rows == [
        ["name", "body"],
        ["Shirt, blue", "line one\nline two\r\nline three"],
    ]


def test_parse_csv_doubled_quotes_are_literal() -> None:
    assert parse_csv('"say ""hi""",x\n') == [['say "hi"', "x"]]


def test_parse_csv_tolerates_ragged_rows() -> None:
    assert parse_csv("a,b,c\n1\n1,2,3,4\n") == [["a", "b", "c"], ["1"], ["1", "2", "3", "4"]]


def test_parse_csv_empty_input_has_no_rows() -> None:
    assert parse_csv("") == []
    assert parse_csv("\n\r\n") == []


def test_read_csv_rows_strips_bom_and_replaces_bad_bytes() -> None:
    payload = "\ufeffHandle,Variant SKU\n".encode("utf-8") + b"h1,SK\xffU\n"

    rows = read_csv_rows(payload)

    assert rows[0] == ["Handle", "Variant SKU"]
    assert rows[1][0] == "h1"
    assert rows[1][1] == "SK\ufffdU"


# ── as_file_source / read_source ─────────────────────────────────


def test_as_file_source_wraps_bytes_like_values() -> None:
    assert as_file_source(b"abc") == BytesSource(b"abc")
    assert as_file_source(bytearray(b"abc")) == BytesSource(b"abc")
    assert as_file_source(memoryview(b"abc")) == BytesSource(b"abc")


def test_as_file_source_treats_strings_and_paths_as_paths(tmp_path: Path) -> None:
    target = tmp_path / "products.csv"

    assert as_file_source(str(target)) == PathSource(target)
    assert as_file_source(target) == PathSource(target)


def test_as_file_source_reads_buffer_attribute_or_key() -> None:
    upload = SimpleNamespace(buffer=b"abc", name="products.csv")

    assert as_file_source(upload) == BufferSource(b"abc")
    assert as_file_source({"buffer": bytearray(b"xyz")}) == BufferSource(b"xyz")


def test_as_file_source_passes_existing_sources_through() -> None:
    source = BytesSource(b"abc")

    assert as_file_source(source) is source


@pytest.mark.parametrize("value", [42, 3.5, ["a"], {"name": "x"}, SimpleNamespace(buffer="text")])
def test_as_file_source_rejects_unknown_shapes(value: object) -> None:
    with pytest.raises(InvalidFileFormat, match="Invalid file format"):
        as_file_source(value)


def test_read_source_reads_each_variant(tmp_path: Path) -> None:
    target = tmp_path / "products.csv"
    target.write_bytes(b"from disk")

    assert read_source(BytesSource(b"raw")) == b"raw"
    assert read_source(BufferSource(b"upload")) == b"upload"
    assert read_source(PathSource(target)) == b"from disk"


def test_read_source_missing_path_raises_read_error(tmp_path: Path) -> None:
    with pytest.raises(FileReadError, match="Could not read file"):
        read_source(PathSource(tmp_path / "missing.csv"))


# ── XLSX ─────────────────────────────────────────────────────────


def test_read_xlsx_rows_returns_first_sheet_without_header_inference(
    make_xlsx: XlsxFactory,
) -> None:
    payload = make_xlsx(
        [
            ["Handle", "Variant SKU", "Google Category"],
            ["h1", "SKU1", "Cat"],
            ["h2", None, "Cat2"],
        ],
        extra_sheets=2,
    )

    rows = read_xlsx_rows(payload)

    assert rows == [
        ["Handle", "Variant SKU", "Google Category"],
        ["h1", "SKU1", "Cat"],
        ["h2", "", "Cat2"],
    ]


def test_read_xlsx_rows_trims_trailing_empty_cells(make_xlsx: XlsxFactory) -> None:
    payload = make_xlsx([["a", "b", "c"], ["1", None, None]])

    rows = read_xlsx_rows(payload)

    assert rows == [["a", "b", "c"], ["1"]]


def test_read_xlsx_rows_coerces_dates_to_iso_text(make_xlsx: XlsxFactory) -> None:
    payload = make_xlsx([["Handle", "Published"], ["h1", datetime(2024, 5, 6, 7, 8, 9)]])

    rows = read_xlsx_rows(payload)

    assert rows[1][1] == "2024-05-06T07:08:09"


def test_read_xlsx_rows_uses_openpyxl_without_header(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, object]] = []

    def _fake_read_excel(source: object, **kwargs: object) -> pd.DataFrame:
        calls.append(kwargs)
        return pd.DataFrame([["a", "b"], ["1", ""]])

    monkeypatch.setattr(pd, "read_excel", _fake_read_excel)

    rows = read_xlsx_rows(b"ignored")

    assert rows == [["a", "b"], ["1"]]
    assert calls[0]["engine"] == "openpyxl"
    assert calls[0]["header"] is None
    assert calls[0]["sheet_name"] == 0
    assert calls[0]["na_filter"] is False


def test_read_xlsx_rows_rejects_non_workbook_bytes() -> None:
    with pytest.raises(FileReadError, match="XLSX"):
        read_xlsx_rows(b"Handle,Variant SKU\nh1,SKU1\n")


def test_read_table_dispatches_on_format(make_xlsx: XlsxFactory) -> None:
    assert read_table(b"a,b\n1,2\n", "csv") == [["a", "b"], ["1", "2"]]
    assert read_table(make_xlsx([["a", "b"], ["1", "2"]]), "xlsx") == [["a", "b"], ["1", "2"]]


# ── Writing ──────────────────────────────────────────────────────


def test_write_json_is_atomic_and_deterministic(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "artifact.json"
    payload = {"b": 1, "a": "2024-01-02T03:04:05", "path": ["foo", "bar"], "name": "Café"}

    out = write_json(path, payload)

    assert out == path
    text = path.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert json.loads(text)["a"] == "2024-01-02T03:04:05"
    assert text.index('"a"') < text.index('"b"') < text.index('"name"') < text.index('"path"')
    assert "Café" in text
    assert not path.with_suffix(path.suffix + ".tmp").exists()


def test_write_json_raises_on_unknown_type(tmp_path: Path) -> None:
    class Unknown:
        pass

    with pytest.raises(TypeError, match="not JSON serializable"):
        write_json(tmp_path / "artifact.json", {"x": Unknown()})


def test_write_bytes_creates_parent_dirs(tmp_path: Path) -> None:
    path = tmp_path / "deep" / "products-export.csv"

    write_bytes(path, b"a,b")

    assert path.read_bytes() == b"a,b"
    assert list(path.parent.iterdir()) == [path]
