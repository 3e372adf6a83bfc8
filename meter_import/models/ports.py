from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Protocol

if TYPE_CHECKING:
    from .import_outcome import FrozenImportOutcome
    from .reading import MeterRef, Reading

"""Collaborator interfaces used by the pipeline.

Concrete implementations live in meter_import.db (PostgreSQL and in-memory).
Presentation (toasts, dialogs, CLI output) stays behind OutcomeReporter.
"""

__all__ = [
    "MeterDirectory",
    "ReadingStore",
    "OutcomeReporter",
]


class MeterDirectory(Protocol):
    """Read-only list of known meters."""

    def meters(self) -> Iterable[MeterRef]: ...


class ReadingStore(Protocol):
    """Persistence for readings. Every method may raise PersistenceError."""

    def delete_by(self, meter_id: str, date: str) -> int:
        """Delete readings for (meter_id, date); returns the number deleted."""
        ...

    def exists(self, meter_id: str, date: str) -> bool: ...

    def insert(self, reading: Reading) -> None: ...


class OutcomeReporter(Protocol):
    """Notified once with the final outcome of an import run."""

    def report(self, outcome: FrozenImportOutcome) -> None: ...
