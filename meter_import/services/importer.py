from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping

from ..errors import NoValidRowsError, PersistenceError
from ..logging.error_log import ErrorLogBuffer
from ..models.column_mapping import ColumnMapping, FrozenColumnMapping
from ..models.config_models import ConflictPolicy
from ..models.error_record import ErrorRecord
from ..models.import_outcome import FrozenImportOutcome, ImportOutcome
from ..models.ports import OutcomeReporter, ReadingStore
from ..models.raw_row import DecodedTable
from ..models.reading import Reading
from ..models.validation_result import ValidationResult

"""Import executor: commits validated rows to a reading store.

Rows are processed strictly one after another. Each row is its own unit of
work: a failing row is logged, counted and skipped, rows committed before it
stay committed, and the run always continues with the next row. After every
row the progress callback receives round(processed / total * 100).
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ImportExecutor",
    "NoteLookup",
    "notes_lookup",
    "progress_percent",
]

NoteLookup = Callable[[int], "str | None"]
ProgressCallback = Callable[[int], None]


def progress_percent(processed: int, total: int) -> int:
    """Half-up rounded percentage (1/3 -> 33, 2/3 -> 67, 1/8 -> 13)."""
    if total <= 0:
        return 100
    return (processed * 200 + total) // (2 * total)


def notes_lookup(table: DecodedTable, mapping: ColumnMapping | FrozenColumnMapping) -> NoteLookup:
    """Build a row_number -> original note text lookup.

    Returns None for rows without a note or when no note column is mapped.
    """
    if not mapping.notes:
        return lambda _row_number: None
    notes = {row.row_number: row.get(mapping.notes) for row in table.rows}

    def lookup(row_number: int) -> str | None:
        return notes.get(row_number) or None

    return lookup


class ImportExecutor:
    """Sequential, failure-isolating writer of validated readings.

    Args:
        store: Reading persistence (delete_by / exists / insert)
        recorded_by: Identity attributed to every inserted reading
        conflict_policy: Behaviour for an existing (meter, date) reading when
            not overwriting
        error_log: Optional JSON Lines buffer receiving one record per failed row
        reporter: Optional outcome reporter notified once at completion
        source_name: File name used in error records
    """

    def __init__(
        self,
        store: ReadingStore,
        recorded_by: str | None,
        *,
        conflict_policy: ConflictPolicy = ConflictPolicy.REJECT,
        error_log: ErrorLogBuffer | None = None,
        reporter: OutcomeReporter | None = None,
        source_name: str = "",
    ) -> None:
        self.store = store
        self.recorded_by = recorded_by
        self.conflict_policy = conflict_policy
        self.error_log = error_log
        self.reporter = reporter
        self.source_name = source_name

    def run(
        self,
        results: Iterable[ValidationResult],
        notes: NoteLookup | Mapping[int, str] | None = None,
        *,
        overwrite_existing: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> FrozenImportOutcome:
        """Import every valid row of ``results``.

        Raises:
            NoValidRowsError: no result has status VALID (nothing is touched)
        """
        valid_rows = [r for r in results if r.is_valid]
        if not valid_rows:
            raise NoValidRowsError("no valid rows to import")

        lookup = self._note_lookup(notes)
        outcome = ImportOutcome()
        total = len(valid_rows)
        logger.info(
            "importing rows=%d overwrite=%s conflict_policy=%s",
            total,
            overwrite_existing,
            self.conflict_policy.value,
        )

        for processed, row in enumerate(valid_rows, start=1):
            if self._import_row(row, lookup(row.row_number), overwrite_existing):
                outcome.record_success()
            else:
                outcome.record_failure()
            if on_progress is not None:
                on_progress(progress_percent(processed, total))

        final = outcome.freeze()
        logger.info("import finished success=%d failed=%d", final.success_count, final.failure_count)
        if self.reporter is not None:
            self.reporter.report(final)
        return final

    def _import_row(self, row: ValidationResult, note: str | None, overwrite_existing: bool) -> bool:
        # valid 行なので meter_id / date / value は必ず存在する
        meter_id = row.meter_id
        date = row.normalized_date
        try:
            if overwrite_existing:
                deleted = self.store.delete_by(meter_id, date)
                if deleted:
                    logger.debug("row=%d replaced %d existing reading(s) meter=%s date=%s",
                                 row.row_number, deleted, meter_id, date)
            elif self.conflict_policy is ConflictPolicy.REJECT and self.store.exists(meter_id, date):
                message = f"reading already exists for meter={meter_id} date={date}"
                logger.warning("row=%d rejected: %s", row.row_number, message)
                self._record_error(row.row_number, "CONFLICT_REJECTED", message)
                return False
            self.store.insert(
                Reading(
                    meter_id=meter_id,
                    value=row.numeric_value,
                    date=date,
                    note=note,
                    recorded_by=self.recorded_by,
                )
            )
        except PersistenceError as e:
            logger.error("row=%d import failed: %s", row.row_number, e)
            self._record_error(row.row_number, "PERSISTENCE_ERROR", str(e))
            return False
        except Exception as e:
            logger.error("row=%d unexpected import error: %s", row.row_number, e)
            self._record_error(row.row_number, "UNEXPECTED_ERROR", str(e))
            return False
        return True

    def _record_error(self, row_number: int, error_type: str, message: str) -> None:
        if self.error_log is None:
            return
        self.error_log.append(ErrorRecord.create(self.source_name, row_number, error_type, message))

    @staticmethod
    def _note_lookup(notes: NoteLookup | Mapping[int, str] | None) -> NoteLookup:
        if notes is None:
            return lambda _row_number: None
        if isinstance(notes, Mapping):
            return lambda row_number: notes.get(row_number) or None
        return notes
