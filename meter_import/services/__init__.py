"""Pipeline services: validation, statistics, import execution, wizard."""

from .importer import ImportExecutor, notes_lookup, progress_percent
from .stats import ValidationStats, compute_stats
from .validator import MeterIndex, parse_date, parse_value, validate_rows
from .wizard import ImportWizard, WizardStep

__all__ = [
    "ImportExecutor",
    "ImportWizard",
    "MeterIndex",
    "ValidationStats",
    "WizardStep",
    "compute_stats",
    "notes_lookup",
    "parse_date",
    "parse_value",
    "progress_percent",
    "validate_rows",
]
