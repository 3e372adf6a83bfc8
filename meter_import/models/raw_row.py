from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

"""RawRow / DecodedTable models.

RawRow represents one non-blank data row of the uploaded file after decoding.
row_number is the 1-based physical line of the row in the source file
(line 1 = header), so numbering skips discarded blank rows.
"""

__all__ = [
    "RawRow",
    "DecodedTable",
]


@dataclass(frozen=True)
class RawRow:
    """Single decoded data row (column name -> trimmed cell text)."""
    row_number: int  # 元ファイルの物理行番号 (ヘッダ = 1)
    cells: Mapping[str, str]

    def __post_init__(self) -> None:
        # dict を読み取り専用ビューに包む (frozen dataclass なので object.__setattr__)
        object.__setattr__(self, "cells", MappingProxyType(dict(self.cells)))

    def get(self, column: str) -> str:
        """Return the cell text for ``column`` or an empty string."""
        if not column:
            return ""
        return self.cells.get(column, "")


@dataclass(frozen=True)
class DecodedTable:
    """Rectangular header + rows table produced by the file decoder."""
    headers: list[str]
    rows: list[RawRow]
    duplicate_headers: list[str] = field(default_factory=list)
    source_name: str = ""

    def __len__(self) -> int:
        return len(self.rows)
