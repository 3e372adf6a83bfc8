from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Row validation result models.

RowStatus is the closed three-tier severity of a validated row. RowIssue is the
reason attached to a warning / error row; every issue belongs to exactly one
tier so a result can never carry, for example, an error reason with a warning
status.
"""

__all__ = [
    "RowStatus",
    "RowIssue",
    "ValidationResult",
]


class RowStatus(Enum):
    """Severity tier of a validated row.

    - VALID: importable
    - WARNING: parsed fine but the meter is unknown; excluded from import
    - ERROR: meter number missing or date / value unparseable
    """
    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"


class RowIssue(Enum):
    """Reason for a warning or error row."""
    MISSING_METER_NUMBER = ("missing meter number", RowStatus.ERROR)
    INVALID_DATE = ("invalid date", RowStatus.ERROR)
    INVALID_VALUE = ("invalid reading value", RowStatus.ERROR)
    METER_NOT_FOUND = ("meter not found", RowStatus.WARNING)

    def __init__(self, message: str, tier: RowStatus) -> None:
        self.message = message
        self.tier = tier


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a single RawRow.

    Attributes:
        row_number: Physical line number of the source row
        meter_number_raw: Meter number cell as found in the file
        normalized_date: Canonical ISO date (YYYY-MM-DD) if the date parsed
        numeric_value: Parsed reading value if the value parsed
        meter_id: Directory id of the matched meter
        status: Severity tier
        issue: Reason, mandatory for WARNING / ERROR and absent for VALID
    """
    row_number: int
    meter_number_raw: str
    normalized_date: str | None
    numeric_value: float | None
    meter_id: str | None
    status: RowStatus
    issue: RowIssue | None = None

    def __post_init__(self) -> None:
        if self.status is RowStatus.VALID:
            if self.issue is not None:
                raise ValueError("valid row must not carry an issue")
            if self.normalized_date is None or self.numeric_value is None or self.meter_id is None:
                raise ValueError("valid row requires date, value and meter id")
            return
        if self.issue is None or self.issue.tier is not self.status:
            raise ValueError(f"{self.status.value} row requires a {self.status.value} issue")
        if self.status is RowStatus.WARNING:
            if self.normalized_date is None or self.numeric_value is None:
                raise ValueError("warning row requires parsed date and value")
            if self.meter_id is not None:
                raise ValueError("warning row must not have a resolved meter id")

    @property
    def reason(self) -> str | None:
        return self.issue.message if self.issue is not None else None

    @property
    def is_valid(self) -> bool:
        return self.status is RowStatus.VALID

    @classmethod
    def valid(
        cls, row_number: int, meter_number_raw: str, normalized_date: str, numeric_value: float, meter_id: str
    ) -> ValidationResult:
        return cls(row_number, meter_number_raw, normalized_date, numeric_value, meter_id, RowStatus.VALID)

    @classmethod
    def warning(
        cls, row_number: int, meter_number_raw: str, normalized_date: str, numeric_value: float, issue: RowIssue
    ) -> ValidationResult:
        return cls(row_number, meter_number_raw, normalized_date, numeric_value, None, RowStatus.WARNING, issue)

    @classmethod
    def error(
        cls,
        row_number: int,
        meter_number_raw: str,
        issue: RowIssue,
        normalized_date: str | None = None,
        numeric_value: float | None = None,
        meter_id: str | None = None,
    ) -> ValidationResult:
        return cls(row_number, meter_number_raw, normalized_date, numeric_value, meter_id, RowStatus.ERROR, issue)
