"""Bulk import of utility meter readings from CSV / Excel files."""

__version__ = "0.1.0"
