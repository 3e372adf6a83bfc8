from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..models.validation_result import RowStatus, ValidationResult

"""Read-only summary of a validation pass (review step of the wizard)."""

__all__ = [
    "ValidationStats",
    "compute_stats",
]


@dataclass(frozen=True)
class ValidationStats:
    valid: int
    warnings: int
    errors: int
    unique_meters: int  # 解決済み meter_id の種類数
    min_date: str | None  # ISO 文字列の辞書順 = 時系列順
    max_date: str | None

    @property
    def total(self) -> int:
        return self.valid + self.warnings + self.errors

    @property
    def can_import(self) -> bool:
        return self.valid > 0


def compute_stats(results: Iterable[ValidationResult]) -> ValidationStats:
    """Aggregate counts per status, distinct meters and the date span.

    Dates are taken from every non-error row (warnings included).
    """
    counts = {status: 0 for status in RowStatus}
    meter_ids: set[str] = set()
    dates: list[str] = []
    for result in results:
        counts[result.status] += 1
        if result.meter_id is not None:
            meter_ids.add(result.meter_id)
        if result.status is not RowStatus.ERROR and result.normalized_date:
            dates.append(result.normalized_date)
    return ValidationStats(
        valid=counts[RowStatus.VALID],
        warnings=counts[RowStatus.WARNING],
        errors=counts[RowStatus.ERROR],
        unique_meters=len(meter_ids),
        min_date=min(dates) if dates else None,
        max_date=max(dates) if dates else None,
    )
