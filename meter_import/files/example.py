from __future__ import annotations

from pathlib import Path

"""Downloadable example file documenting the expected import shape.

Not consumed by the pipeline; the headers are chosen so that the default
header heuristics map every column.
"""

__all__ = [
    "EXAMPLE_CSV",
    "EXAMPLE_FILENAME",
    "write_example",
]

EXAMPLE_FILENAME = "zaehler-import-beispiel.csv"

EXAMPLE_CSV = (
    "Zählernummer;Datum;Stand;Notiz\n"
    "STR-001;15.01.2024;12345,67;Jahresablesung\n"
    "GAS-001;15.01.2024;5678,90;\n"
)


def write_example(path: Path) -> Path:
    """Write the example CSV to ``path`` (a directory gets the default file name)."""
    if path.is_dir():
        path = path / EXAMPLE_FILENAME
    path.write_text(EXAMPLE_CSV, encoding="utf-8")
    return path
