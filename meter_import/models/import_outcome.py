from __future__ import annotations

from dataclasses import dataclass

"""ImportOutcome models.

ImportOutcome starts empty and is only ever incremented by the import executor.
freeze() returns the immutable result handed to callers / outcome reporters.
"""

__all__ = [
    "ImportOutcome",
    "FrozenImportOutcome",
]


@dataclass(frozen=True)
class FrozenImportOutcome:
    """Final result of an import run."""
    success_count: int
    failure_count: int

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count

    @property
    def has_successes(self) -> bool:
        """Callers refresh dependent views when at least one row was stored."""
        return self.success_count > 0

    @property
    def has_failures(self) -> bool:
        """Callers surface a partial failure notice when any row failed."""
        return self.failure_count > 0


class ImportOutcome:
    """Additive success / failure accumulator used during a run."""

    def __init__(self) -> None:
        self._success = 0
        self._failure = 0

    @property
    def success_count(self) -> int:
        return self._success

    @property
    def failure_count(self) -> int:
        return self._failure

    def record_success(self) -> None:
        self._success += 1

    def record_failure(self) -> None:
        self._failure += 1

    def freeze(self) -> FrozenImportOutcome:
        return FrozenImportOutcome(success_count=self._success, failure_count=self._failure)
