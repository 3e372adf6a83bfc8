from __future__ import annotations

from dataclasses import dataclass, fields

from ..errors import MappingError

"""ColumnMapping model.

Associates the canonical fields (meter number, date, value, note) with header
names of the uploaded file. An empty string means "not mapped".
The mapping is edited by the user until validation starts; validation works on
the frozen snapshot returned by ColumnMapping.frozen().
"""

__all__ = [
    "ColumnMapping",
    "FrozenColumnMapping",
    "REQUIRED_FIELDS",
    "MAPPING_FIELDS",
]

REQUIRED_FIELDS: tuple[str, ...] = ("meter_number", "date", "value")
MAPPING_FIELDS: tuple[str, ...] = REQUIRED_FIELDS + ("notes",)


@dataclass
class ColumnMapping:
    """User editable mapping from canonical field to source header."""
    meter_number: str = ""
    date: str = ""
    value: str = ""
    notes: str = ""  # 任意

    def missing_required(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]

    def is_complete(self) -> bool:
        return not self.missing_required()

    def require_complete(self) -> None:
        """Raise MappingError unless meter number, date and value are mapped."""
        missing = self.missing_required()
        if missing:
            raise MappingError(f"required columns not mapped: {missing}", missing=missing)

    def frozen(self) -> FrozenColumnMapping:
        return FrozenColumnMapping(**{f.name: getattr(self, f.name) for f in fields(self)})


@dataclass(frozen=True)
class FrozenColumnMapping:
    """Immutable snapshot of a ColumnMapping used for one validation pass."""
    meter_number: str
    date: str
    value: str
    notes: str = ""
