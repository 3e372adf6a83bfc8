"""Command line interface (``meter-import``)."""

from .__main__ import main

__all__ = ["main"]
