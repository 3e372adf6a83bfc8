from __future__ import annotations

import io
import logging
import math
from datetime import date, datetime
from pathlib import PurePath
from typing import Any

import pandas as pd

from ..errors import DecodeError, FileError
from ..models.config_models import DEFAULT_MAX_FILE_SIZE
from ..models.raw_row import DecodedTable, RawRow

"""Uploaded file decoder.

Turns the raw bytes of a .csv / .xlsx / .xls upload into a DecodedTable:
- first physical row = header, later rows = data (mapped positionally)
- Excel: first sheet only, read with pandas (openpyxl / xlrd)
- CSV: ';' separator if present anywhere in the text, else ','
- blank rows are dropped; kept rows keep their physical line number
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ALLOWED_EXTENSIONS",
    "check_file",
    "decode_file",
    "decode_csv",
]

ALLOWED_EXTENSIONS = (".csv", ".xlsx", ".xls")
EXCEL_ENGINES = {".xlsx": "openpyxl", ".xls": "xlrd"}


def _extension(filename: str) -> str:
    return PurePath(filename).suffix.lower()


def check_file(filename: str, size: int, max_size_bytes: int = DEFAULT_MAX_FILE_SIZE) -> str:
    """Reject unsupported / oversized files before any parsing.

    Returns:
        The lower-cased extension of ``filename``

    Raises:
        FileError: extension not in ALLOWED_EXTENSIONS or size above the cap
    """
    ext = _extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise FileError(f"unsupported file type '{ext or filename}' (allowed: {', '.join(ALLOWED_EXTENSIONS)})")
    if size > max_size_bytes:
        raise FileError(f"file too large: {size} bytes (max {max_size_bytes})")
    return ext


def decode_file(data: bytes, filename: str, *, max_size_bytes: int = DEFAULT_MAX_FILE_SIZE) -> DecodedTable:
    """Decode an uploaded file into a header + rows table.

    Parameters
    ----------
    data: ファイル内容 (bytes)
    filename: 元ファイル名 (拡張子で形式を判定)
    max_size_bytes: サイズ上限
    """
    ext = check_file(filename, len(data), max_size_bytes)
    if ext in EXCEL_ENGINES:
        physical = _read_first_sheet(data, EXCEL_ENGINES[ext])
    else:
        physical = _split_delimited(_decode_text(data))
    table = _build_table(physical, source_name=PurePath(filename).name)
    logger.debug(
        "decoded file=%s headers=%s rows=%d duplicates=%s",
        filename,
        table.headers,
        len(table.rows),
        table.duplicate_headers,
    )
    return table


def decode_csv(text: str, source_name: str = "") -> DecodedTable:
    """Decode delimited text (already a str) into a table."""
    return _build_table(_split_delimited(text), source_name=source_name)



def _decode_text(data: bytes) -> str:
    # UTF-8 (BOM 付き含む) を優先し、失敗時は latin-1 (Excel の CSV 出力対策)
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def _strip_cell(cell: str) -> str:
    cell = cell.strip()
    if len(cell) >= 2 and cell.startswith('"') and cell.endswith('"'):
        cell = cell[1:-1]
    elif cell.startswith('"'):
        cell = cell[1:]
    elif cell.endswith('"'):
        cell = cell[:-1]
    return cell.strip()


def _split_delimited(text: str) -> list[list[str]]:
    separator = ";" if ";" in text else ","
    return [[_strip_cell(cell) for cell in line.split(separator)] for line in text.split("\n")]


def _read_first_sheet(data: bytes, engine: str) -> list[list[str]]:
    try:
        # ヘッダなしで生読み (1 行目をヘッダとして後で適用)
        df = pd.read_excel(
            io.BytesIO(data),
            sheet_name=0,
            header=None,
            dtype=object,
            engine=engine,
            keep_default_na=False,
        )
    except Exception as e:
        raise DecodeError(f"could not read workbook: {e}") from e
    return [[_cell_text(v) for v in raw] for raw in df.itertuples(index=False, name=None)]


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            # 数値セルの 1001.0 を "1001" に (メーター番号照合のため)
            return str(int(value))
        return repr(value)
    if not isinstance(value, str) and pd.isna(value):
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def _build_table(physical: list[list[str]], source_name: str = "") -> DecodedTable:
    if len(physical) < 2:
        raise DecodeError(f"file '{source_name}' contains no data (header plus at least one row required)")
    headers = [str(h).strip() for h in physical[0]]

    duplicates: list[str] = []
    first_index: dict[str, int] = {}
    for idx, name in enumerate(headers):
        if name in first_index:
            if name not in duplicates:
                duplicates.append(name)
            continue
        first_index[name] = idx
    if duplicates:
        logger.warning("duplicate headers in %s: %s (first occurrence is used)", source_name or "file", duplicates)

    rows: list[RawRow] = []
    for line_no, raw in enumerate(physical[1:], start=2):
        # 全セル空の行は番号付与前に破棄
        if all(cell.strip() == "" for cell in raw):
            continue
        cells = {
            name: (raw[idx].strip() if idx < len(raw) else "")
            for name, idx in first_index.items()
        }
        rows.append(RawRow(row_number=line_no, cells=cells))

    if not rows:
        raise DecodeError(f"file '{source_name}' contains no data rows")
    return DecodedTable(headers=headers, rows=rows, duplicate_headers=duplicates, source_name=source_name)
