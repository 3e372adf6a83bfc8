from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable
from datetime import datetime

from ..models.column_mapping import ColumnMapping, FrozenColumnMapping
from ..models.raw_row import DecodedTable, RawRow
from ..models.reading import MeterRef
from ..models.validation_result import RowIssue, ValidationResult

"""Row validation.

One pass over all decoded rows, in row order. Checks (first failure decides
the status, the remaining fields are still parsed for display):

1. meter number present                 -> error "missing meter number"
2. date as DD.MM.YYYY, else YYYY-MM-DD  -> error "invalid date"
3. value as decimal (',' or '.')        -> error "invalid reading value"
4. meter number known (case-insensitive)-> warning "meter not found"
"""

logger = logging.getLogger(__name__)

__all__ = [
    "DATE_FORMATS",
    "MeterIndex",
    "parse_date",
    "parse_value",
    "validate_row",
    "validate_rows",
]

# 優先順: ドイツ式 -> ISO
DATE_FORMATS: tuple[str, ...] = ("%d.%m.%Y", "%Y-%m-%d")
_DECIMAL_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def parse_date(text: str) -> str | None:
    """Parse a date cell and return the canonical ISO form, or None.

    >>> parse_date("15.01.2024")
    '2024-01-15'
    >>> parse_date("2024-01-15")
    '2024-01-15'
    >>> parse_date("31.02.2024") is None
    True
    """
    text = (text or "").strip()
    if not text:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def parse_value(text: str) -> float | None:
    """Parse a reading value with comma or period decimal separator.

    >>> parse_value("12345,67") == parse_value("12345.67") == 12345.67
    True
    """
    text = (text or "").strip().replace(",", ".", 1)
    if not _DECIMAL_RE.fullmatch(text):
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


class MeterIndex:
    """Case-insensitive lookup of meter number -> directory id.

    Built once per validation pass from the meter directory.
    """

    def __init__(self, meters: Iterable[MeterRef]) -> None:
        self._by_number: dict[str, str] = {}
        for meter in meters:
            key = meter.meter_number.strip().casefold()
            # 同一番号が複数あれば最初のものを採用
            self._by_number.setdefault(key, meter.id)

    def __len__(self) -> int:
        return len(self._by_number)

    def resolve(self, meter_number: str) -> str | None:
        if not meter_number:
            return None
        return self._by_number.get(meter_number.strip().casefold())


def validate_row(row: RawRow, mapping: FrozenColumnMapping, index: MeterIndex) -> ValidationResult:
    """Classify a single row as valid / warning / error."""
    meter_number = row.get(mapping.meter_number)
    normalized_date = parse_date(row.get(mapping.date))
    numeric_value = parse_value(row.get(mapping.value))
    meter_id = index.resolve(meter_number)

    if not meter_number:
        return ValidationResult.error(
            row.row_number, meter_number, RowIssue.MISSING_METER_NUMBER, normalized_date, numeric_value
        )
    if normalized_date is None:
        return ValidationResult.error(
            row.row_number, meter_number, RowIssue.INVALID_DATE, None, numeric_value, meter_id
        )
    if numeric_value is None:
        return ValidationResult.error(
            row.row_number, meter_number, RowIssue.INVALID_VALUE, normalized_date, None, meter_id
        )
    if meter_id is None:
        return ValidationResult.warning(
            row.row_number, meter_number, normalized_date, numeric_value, RowIssue.METER_NOT_FOUND
        )
    return ValidationResult.valid(row.row_number, meter_number, normalized_date, numeric_value, meter_id)


def validate_rows(
    table: DecodedTable,
    mapping: ColumnMapping | FrozenColumnMapping,
    meters: Iterable[MeterRef] | MeterIndex,
) -> list[ValidationResult]:
    """Validate every row of ``table`` (one result per row, in row order).

    Args:
        table: Decoded upload
        mapping: Column mapping; must have meter number, date and value mapped
        meters: Directory entries (or a prebuilt MeterIndex)

    Raises:
        MappingError: a required column is unmapped
    """
    if isinstance(mapping, ColumnMapping):
        mapping.require_complete()
        mapping = mapping.frozen()
    index = meters if isinstance(meters, MeterIndex) else MeterIndex(meters)
    results = [validate_row(row, mapping, index) for row in table.rows]
    logger.debug("validated rows=%d known_meters=%d", len(results), len(index))
    return results
