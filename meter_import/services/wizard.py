from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum

from ..errors import NoValidRowsError, WizardStateError
from ..files.reader import decode_file
from ..logging.error_log import ErrorLogBuffer
from ..mapping.schema_mapper import DEFAULT_HEURISTICS, HeaderRule, apply_overrides, guess_mapping
from ..models.column_mapping import ColumnMapping
from ..models.config_models import DEFAULT_MAX_FILE_SIZE, ConflictPolicy
from ..models.import_outcome import FrozenImportOutcome
from ..models.ports import MeterDirectory, OutcomeReporter, ReadingStore
from ..models.raw_row import DecodedTable
from ..models.validation_result import RowStatus, ValidationResult
from .importer import ImportExecutor, ProgressCallback, notes_lookup
from .stats import ValidationStats, compute_stats
from .validator import validate_rows

"""Import wizard state machine.

Thin orchestration over the pipeline stages:

    UPLOAD -> MAPPING -> VALIDATION -> CONFIRM -> IMPORTING -> RESULT

back() is allowed from MAPPING / VALIDATION / CONFIRM, reset() from any state.
Each guard raises the error of the stage that blocks progression.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "WizardStep",
    "ImportWizard",
]


class WizardStep(Enum):
    UPLOAD = "upload"
    MAPPING = "mapping"
    VALIDATION = "validation"
    CONFIRM = "confirm"
    IMPORTING = "importing"
    RESULT = "result"


_BACK = {
    WizardStep.MAPPING: WizardStep.UPLOAD,
    WizardStep.VALIDATION: WizardStep.MAPPING,
    WizardStep.CONFIRM: WizardStep.VALIDATION,
}


class ImportWizard:
    """In-memory pipeline state for one upload.

    Args:
        directory: Meter directory consulted during validation
        store: Reading store used by the import step
        recorded_by: Current user id attributed to imported readings
        reporter: Outcome reporter notified after the import step
        heuristics: Header rules for the mapping guess
        max_file_size_bytes: Upload size cap
        conflict_policy: Conflict handling when not overwriting
        error_log: Optional JSON Lines buffer for failed rows
    """

    def __init__(
        self,
        directory: MeterDirectory,
        store: ReadingStore,
        recorded_by: str | None,
        *,
        reporter: OutcomeReporter | None = None,
        heuristics: Sequence[HeaderRule] = DEFAULT_HEURISTICS,
        max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE,
        conflict_policy: ConflictPolicy = ConflictPolicy.REJECT,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.directory = directory
        self.store = store
        self.recorded_by = recorded_by
        self.reporter = reporter
        self.heuristics = tuple(heuristics)
        self.max_file_size_bytes = max_file_size_bytes
        self.conflict_policy = conflict_policy
        self.error_log = error_log
        self.reset()

    # --- state -----------------------------------------------------------------

    def reset(self) -> None:
        """Clear all pipeline state and return to UPLOAD (allowed from any step)."""
        self.step = WizardStep.UPLOAD
        self.table: DecodedTable | None = None
        self.mapping = ColumnMapping()
        self.results: list[ValidationResult] = []
        self.stats: ValidationStats | None = None
        self.overwrite_existing = False
        self.outcome: FrozenImportOutcome | None = None
        self.progress = 0

    def back(self) -> WizardStep:
        """Step back from MAPPING / VALIDATION / CONFIRM."""
        previous = _BACK.get(self.step)
        if previous is None:
            raise WizardStateError(f"cannot go back from {self.step.value}")
        if previous is WizardStep.UPLOAD:
            self.table = None
            self.mapping = ColumnMapping()
        if previous is WizardStep.MAPPING:
            # マッピング変更後は再検証が必要
            self.results = []
            self.stats = None
        self.step = previous
        return self.step

    def _require(self, step: WizardStep) -> None:
        if self.step is not step:
            raise WizardStateError(f"expected step {step.value}, wizard is at {self.step.value}")

    # --- transitions -------------------------------------------------------------

    def upload(self, data: bytes, filename: str) -> DecodedTable:
        """UPLOAD -> MAPPING. FileError / DecodeError leave the wizard in UPLOAD."""
        self._require(WizardStep.UPLOAD)
        table = decode_file(data, filename, max_size_bytes=self.max_file_size_bytes)
        self.table = table
        self.mapping = guess_mapping(table.headers, self.heuristics)
        self.step = WizardStep.MAPPING
        logger.info("uploaded file=%s rows=%d", filename, len(table.rows))
        return table

    def override_mapping(self, **fields: str | None) -> ColumnMapping:
        """Replace mapping fields chosen by the user (MAPPING only)."""
        self._require(WizardStep.MAPPING)
        assert self.table is not None
        return apply_overrides(self.mapping, self.table.headers, **fields)

    def validate(self) -> ValidationStats:
        """MAPPING -> VALIDATION. Requires meter number, date and value mapped."""
        self._require(WizardStep.MAPPING)
        assert self.table is not None
        self.mapping.require_complete()
        self.results = validate_rows(self.table, self.mapping.frozen(), self.directory.meters())
        self.stats = compute_stats(self.results)
        self.step = WizardStep.VALIDATION
        logger.info(
            "validation valid=%d warnings=%d errors=%d",
            self.stats.valid,
            self.stats.warnings,
            self.stats.errors,
        )
        return self.stats

    def confirm(self, overwrite_existing: bool = False) -> None:
        """VALIDATION -> CONFIRM. Requires at least one valid row."""
        self._require(WizardStep.VALIDATION)
        if self.stats is None or not self.stats.can_import:
            raise NoValidRowsError("no valid rows to import")
        self.overwrite_existing = overwrite_existing
        self.step = WizardStep.CONFIRM

    def run_import(self, on_progress: ProgressCallback | None = None) -> FrozenImportOutcome:
        """CONFIRM -> IMPORTING -> RESULT. Runs to completion once started."""
        self._require(WizardStep.CONFIRM)
        assert self.table is not None
        self.step = WizardStep.IMPORTING

        def track(percent: int) -> None:
            self.progress = percent
            if on_progress is not None:
                on_progress(percent)

        executor = ImportExecutor(
            self.store,
            self.recorded_by,
            conflict_policy=self.conflict_policy,
            error_log=self.error_log,
            reporter=self.reporter,
            source_name=self.table.source_name,
        )
        self.outcome = executor.run(
            self.results,
            notes_lookup(self.table, self.mapping),
            overwrite_existing=self.overwrite_existing,
            on_progress=track,
        )
        self.step = WizardStep.RESULT
        return self.outcome

    # --- review helpers ---------------------------------------------------------

    def rows_with_status(self, status: RowStatus) -> list[ValidationResult]:
        return [r for r in self.results if r.status is status]

    @property
    def can_validate(self) -> bool:
        return self.step is WizardStep.MAPPING and self.mapping.is_complete()

    def missing_mapping(self) -> list[str]:
        return self.mapping.missing_required()

