"""Domain models for the meter reading importer.

This package contains the records passed between the pipeline stages
(decoder -> mapper -> validator -> stats -> executor) and the configuration
dataclasses.
"""

from .column_mapping import REQUIRED_FIELDS, ColumnMapping, FrozenColumnMapping
from .config_models import ConflictPolicy, DatabaseConfig, HeaderRuleConfig, ImportConfig
from .error_record import ErrorRecord
from .import_outcome import FrozenImportOutcome, ImportOutcome
from .raw_row import DecodedTable, RawRow
from .reading import MeterRef, Reading
from .validation_result import RowIssue, RowStatus, ValidationResult

__all__ = [
    # Configuration models
    "ConflictPolicy",
    "DatabaseConfig",
    "HeaderRuleConfig",
    "ImportConfig",
    # Pipeline models
    "RawRow",
    "DecodedTable",
    "ColumnMapping",
    "FrozenColumnMapping",
    "REQUIRED_FIELDS",
    "RowStatus",
    "RowIssue",
    "ValidationResult",
    "ImportOutcome",
    "FrozenImportOutcome",
    "MeterRef",
    "Reading",
    "ErrorRecord",
]
