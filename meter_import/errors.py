from __future__ import annotations

"""Exception hierarchy for the meter reading import pipeline.

File / decode / mapping errors are fatal to the current wizard step.
Row level problems are not exceptions (see models.validation_result.RowIssue);
PersistenceError is raised by a reading store for a single row and is caught
and counted by the import executor.
"""

__all__ = [
    "ImportPipelineError",
    "FileError",
    "DecodeError",
    "MappingError",
    "NoValidRowsError",
    "PersistenceError",
    "WizardStateError",
]


class ImportPipelineError(Exception):
    """Base exception for import pipeline errors."""


class FileError(ImportPipelineError):
    """Raised when a file has an unsupported extension or exceeds the size cap."""


class DecodeError(ImportPipelineError):
    """Raised when file content cannot be reduced to a header plus one data row."""


class MappingError(ImportPipelineError):
    """Raised when a required column (meter number / date / value) is unmapped."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class NoValidRowsError(ImportPipelineError):
    """Raised when an import is requested but no row passed validation."""


class PersistenceError(ImportPipelineError):
    """Raised by a reading store when a delete / insert for one row fails."""


class WizardStateError(ImportPipelineError):
    """Raised on an illegal wizard transition."""
