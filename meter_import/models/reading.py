from __future__ import annotations

from dataclasses import dataclass

"""Meter directory entry and reading record."""

__all__ = [
    "MeterRef",
    "Reading",
]


@dataclass(frozen=True)
class MeterRef:
    """Known meter: directory id and its (unique) meter number."""
    id: str
    meter_number: str


@dataclass(frozen=True)
class Reading:
    """A reading as handed to a ReadingStore for insertion."""
    meter_id: str
    value: float
    date: str  # YYYY-MM-DD
    note: str | None
    recorded_by: str | None
