from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

from meter_import.errors import DecodeError, FileError
from meter_import.files.reader import check_file, decode_csv, decode_file


def _make_excel(tmp_path: Path, name: str, sheets: dict[str, list[list[object]]]) -> Path:
    p = tmp_path / name
    with pd.ExcelWriter(p, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return p


def test_csv_semicolon_separator_and_quotes():
    data = 'Zählernummer;Datum;Stand;Notiz\n"STR-001";15.01.2024; 12345,67 ;"Jahresablesung"\n'.encode("utf-8")
    table = decode_file(data, "readings.csv")
    assert table.headers == ["Zählernummer", "Datum", "Stand", "Notiz"]
    assert len(table.rows) == 1
    row = table.rows[0]
    assert row.row_number == 2
    assert row.get("Zählernummer") == "STR-001"
    assert row.get("Stand") == "12345,67"
    assert row.get("Notiz") == "Jahresablesung"


def test_csv_semicolon_wins_when_present_anywhere():
    # ';' only inside a value still selects ';' as separator
    table = decode_csv("meter,date,value\nSTR-001,2024-01-15,1;note\n")
    assert table.headers == ["meter,date,value"]


def test_csv_comma_separator():
    table = decode_csv("meter,date,value\nSTR-001,2024-01-15,12.5\n")
    assert table.headers == ["meter", "date", "value"]
    assert table.rows[0].get("value") == "12.5"


def test_csv_utf8_bom_is_stripped():
    data = "\ufeffmeter;date;value\nSTR-001;2024-01-15;1\n".encode("utf-8")
    table = decode_file(data, "bom.csv")
    assert table.headers[0] == "meter"


def test_csv_latin1_fallback():
    data = "Zählernummer;Datum;Stand\nSTR-001;15.01.2024;1\n".encode("latin-1")
    table = decode_file(data, "latin.csv")
    assert table.headers[0] == "Zählernummer"


def test_blank_rows_discarded_and_numbering_follows_physical_lines():
    text = "meter;date;value\nA;15.01.2024;1\n;;\n\nB;16.01.2024;2\n  ;  ; \nC;17.01.2024;3\n"
    table = decode_csv(text)
    assert [r.row_number for r in table.rows] == [2, 5, 7]
    assert [r.get("meter") for r in table.rows] == ["A", "B", "C"]


def test_short_rows_are_padded_with_empty_cells():
    table = decode_csv("meter;date;value;note\nA;15.01.2024\n")
    assert table.rows[0].get("value") == ""
    assert table.rows[0].get("note") == ""


def test_header_only_file_raises_decode_error():
    with pytest.raises(DecodeError):
        decode_file(b"meter;date;value\n", "empty.csv")


def test_header_plus_blank_rows_raises_decode_error():
    with pytest.raises(DecodeError):
        decode_csv("meter;date;value\n;;\n\n")


def test_duplicate_headers_first_occurrence_wins():
    table = decode_csv("meter;value;value\nA;1;2\n")
    assert table.headers == ["meter", "value", "value"]
    assert table.duplicate_headers == ["value"]
    assert table.rows[0].get("value") == "1"


def test_raw_row_cells_are_read_only():
    table = decode_csv("meter;date;value\nA;15.01.2024;1\n")
    with pytest.raises(TypeError):
        table.rows[0].cells["meter"] = "B"  # type: ignore[index]


@pytest.mark.parametrize("name", ["readings.txt", "readings.pdf", "readings"])
def test_unsupported_extension_rejected(name: str):
    with pytest.raises(FileError):
        decode_file(b"meter;date;value\nA;1;1\n", name)


def test_oversized_file_rejected_before_parsing():
    with pytest.raises(FileError):
        check_file("big.csv", 5 * 1024 * 1024 + 1)
    assert check_file("ok.CSV", 5 * 1024 * 1024) == ".csv"


def test_size_cap_is_configurable():
    with pytest.raises(FileError):
        decode_file(b"meter;date;value\nA;15.01.2024;1\n", "small.csv", max_size_bytes=10)


def test_xlsx_first_sheet_only(tmp_path: Path):
    excel = _make_excel(
        tmp_path,
        "readings.xlsx",
        {
            "Ablesungen": [
                ["Zählernummer", "Datum", "Stand"],
                ["STR-001", "15.01.2024", "12345,67"],
                ["GAS-001", "15.01.2024", 5678.9],
            ],
            "Andere": [["x"], ["y"]],
        },
    )
    table = decode_file(excel.read_bytes(), excel.name)
    assert table.headers == ["Zählernummer", "Datum", "Stand"]
    assert len(table.rows) == 2
    assert table.rows[1].get("Stand") == "5678.9"


def test_xlsx_numeric_and_date_cells_stringified(tmp_path: Path):
    excel = _make_excel(
        tmp_path,
        "typed.xlsx",
        {
            "Sheet1": [
                ["meter", "date", "value"],
                [1001, datetime(2024, 1, 15), 12345],
            ]
        },
    )
    table = decode_file(excel.read_bytes(), excel.name)
    row = table.rows[0]
    assert row.get("meter") == "1001"
    assert row.get("date") == "2024-01-15"
    assert row.get("value") == "12345"


def test_xlsx_blank_row_skipped(tmp_path: Path):
    excel = _make_excel(
        tmp_path,
        "gaps.xlsx",
        {
            "Sheet1": [
                ["meter", "date", "value"],
                ["A", "15.01.2024", 1],
                [None, None, None],
                ["B", "16.01.2024", 2],
            ]
        },
    )
    table = decode_file(excel.read_bytes(), excel.name)
    assert [r.get("meter") for r in table.rows] == ["A", "B"]
    assert table.rows[0].row_number == 2


def test_corrupt_workbook_raises_decode_error():
    with pytest.raises(DecodeError):
        decode_file(b"not a zip file", "broken.xlsx")


def test_only_newline_ends_a_csv_line():
    text = "meter;date;value;note\nA\x0c;15.01.2024;1;x y\nB;16.01.2024;2;a\x1eb\x85c\nC;17.01.2024;3;\n"
    table = decode_csv(text)
    assert [r.row_number for r in table.rows] == [2, 3, 4]
    assert [r.get("meter") for r in table.rows] == ["A", "B", "C"]
    assert table.rows[0].get("note") == "x y"


def test_crlf_line_endings():
    table = decode_csv("meter;date;value\r\nA;15.01.2024;1\r\n\r\nB;16.01.2024;2\r\n")
    assert table.headers == ["meter", "date", "value"]
    assert [r.row_number for r in table.rows] == [2, 4]
    assert table.rows[1].get("value") == "2"
