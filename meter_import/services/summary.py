from __future__ import annotations

from ..models.import_outcome import FrozenImportOutcome
from .stats import ValidationStats

"""SUMMARY line rendering.

Format:
SUMMARY file={name} rows={total} valid={v} warnings={w} errors={e}
meters={m} dates={min}..{max} imported={s} failed={f}

imported / failed are "-" when no import ran (dry run, nothing valid).
"""


SUMMARY_PREFIX = "SUMMARY"


def render_summary_line(file_name: str, stats: ValidationStats, outcome: FrozenImportOutcome | None) -> str:
    """Render the one-line SUMMARY for an import run.

    Examples:
        >>> stats = ValidationStats(valid=2, warnings=0, errors=1, unique_meters=1,
        ...                         min_date="2024-01-15", max_date="2024-02-15")
        >>> render_summary_line("readings.csv", stats, FrozenImportOutcome(2, 0))
        'SUMMARY file=readings.csv rows=3 valid=2 warnings=0 errors=1 meters=1 dates=2024-01-15..2024-02-15 imported=2 failed=0'
    """
    return f"{SUMMARY_PREFIX} {render_summary_body(file_name, stats, outcome)}"


def render_summary_body(file_name: str, stats: ValidationStats, outcome: FrozenImportOutcome | None) -> str:
    """Summary fields without the SUMMARY label (log_summary adds it)."""
    if stats.min_date is None:
        dates = "-"
    else:
        dates = f"{stats.min_date}..{stats.max_date}"
    imported = str(outcome.success_count) if outcome is not None else "-"
    failed = str(outcome.failure_count) if outcome is not None else "-"
    return (
        f"file={file_name} "
        f"rows={stats.total} "
        f"valid={stats.valid} "
        f"warnings={stats.warnings} "
        f"errors={stats.errors} "
        f"meters={stats.unique_meters} "
        f"dates={dates} "
        f"imported={imported} "
        f"failed={failed}"
    )
