"""Header -> canonical field mapping."""

from .schema_mapper import DEFAULT_HEURISTICS, HeaderRule, apply_overrides, build_heuristics, guess_mapping

__all__ = [
    "DEFAULT_HEURISTICS",
    "HeaderRule",
    "apply_overrides",
    "build_heuristics",
    "guess_mapping",
]
