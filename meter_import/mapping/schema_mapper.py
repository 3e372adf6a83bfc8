from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from ..errors import MappingError
from ..models.column_mapping import MAPPING_FIELDS, ColumnMapping
from ..models.config_models import HeaderRuleConfig

"""Column mapping heuristics.

Each canonical field has one HeaderRule. Rules are evaluated against the
lower-cased headers in their original left-to-right order and the first
matching header wins. The rule list is plain data so that it can be replaced
from configuration and tested on its own.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "HeaderRule",
    "DEFAULT_HEURISTICS",
    "build_heuristics",
    "guess_mapping",
    "apply_overrides",
    "first_match",
]


@dataclass(frozen=True)
class HeaderRule:
    """Predicate over a lower-cased header for one canonical field."""
    field: str
    contains: tuple[str, ...] = ()
    equals: tuple[str, ...] = ()

    def matches(self, header: str) -> bool:
        lowered = header.strip().lower()
        if not lowered:
            return False
        return lowered in self.equals or any(token in lowered for token in self.contains)


DEFAULT_HEURISTICS: tuple[HeaderRule, ...] = (
    HeaderRule("meter_number", contains=("zähler", "nummer"), equals=("meter",)),
    HeaderRule("date", contains=("datum",), equals=("date",)),
    HeaderRule("value", contains=("stand", "wert"), equals=("value",)),
    HeaderRule("notes", contains=("notiz", "note", "bemerkung")),
)


def build_heuristics(overrides: Mapping[str, HeaderRuleConfig] | None) -> tuple[HeaderRule, ...]:
    """Return DEFAULT_HEURISTICS with per-field rules replaced from config."""
    if not overrides:
        return DEFAULT_HEURISTICS
    unknown = set(overrides) - set(MAPPING_FIELDS)
    if unknown:
        raise MappingError(f"unknown heuristic fields: {sorted(unknown)}")
    rules = []
    for rule in DEFAULT_HEURISTICS:
        cfg = overrides.get(rule.field)
        if cfg is None:
            rules.append(rule)
            continue
        rules.append(
            HeaderRule(
                rule.field,
                contains=tuple(t.lower() for t in cfg.contains),
                equals=tuple(t.lower() for t in cfg.equals),
            )
        )
    return tuple(rules)


def first_match(headers: Sequence[str], rule: HeaderRule) -> str:
    """Return the first header satisfying ``rule`` or an empty string."""
    for header in headers:
        if rule.matches(header):
            return header
    return ""


def guess_mapping(headers: Sequence[str], heuristics: Iterable[HeaderRule] = DEFAULT_HEURISTICS) -> ColumnMapping:
    """Best-effort mapping from canonical fields to headers.

    Fields without a matching header are left empty. A header may satisfy the
    rules of several fields (e.g. "Zählerstand"); each field is decided
    independently, as the heuristics are applied per field.
    """
    mapping = ColumnMapping()
    for rule in heuristics:
        setattr(mapping, rule.field, first_match(headers, rule))
    logger.debug("guessed mapping=%s", mapping)
    return mapping


def apply_overrides(mapping: ColumnMapping, headers: Sequence[str], **fields: str | None) -> ColumnMapping:
    """Replace mapping fields with user choices.

    ``None`` leaves a field untouched, an empty string clears it.

    Raises:
        MappingError: unknown field name, or a header not present in the file
    """
    for name, header in fields.items():
        if name not in MAPPING_FIELDS:
            raise MappingError(f"unknown mapping field: {name}")
        if header is None:
            continue
        if header and header not in headers:
            raise MappingError(f"column '{header}' not found in file headers {list(headers)}")
        setattr(mapping, name, header)
    return mapping
