from __future__ import annotations

from collections.abc import Iterable

from ..models.reading import MeterRef, Reading

"""In-memory directory / store.

Used by the CLI when no database is reachable (mock mode) and by tests.
"""

__all__ = [
    "InMemoryMeterDirectory",
    "InMemoryReadingStore",
]


class InMemoryMeterDirectory:
    def __init__(self, meters: Iterable[MeterRef] = ()) -> None:
        self._meters = list(meters)

    def meters(self) -> list[MeterRef]:
        return list(self._meters)


class InMemoryReadingStore:
    """List-backed reading store (no uniqueness constraint, like the table)."""

    def __init__(self, readings: Iterable[Reading] = ()) -> None:
        self.readings: list[Reading] = list(readings)

    def delete_by(self, meter_id: str, date: str) -> int:
        before = len(self.readings)
        self.readings = [r for r in self.readings if not (r.meter_id == meter_id and r.date == date)]
        return before - len(self.readings)

    def exists(self, meter_id: str, date: str) -> bool:
        return any(r.meter_id == meter_id and r.date == date for r in self.readings)

    def insert(self, reading: Reading) -> None:
        self.readings.append(reading)

    def keys(self) -> list[tuple[str, str]]:
        return [(r.meter_id, r.date) for r in self.readings]
