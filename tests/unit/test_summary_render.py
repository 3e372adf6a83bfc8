from __future__ import annotations

from meter_import.models.import_outcome import FrozenImportOutcome
from meter_import.services.stats import ValidationStats
from meter_import.services.summary import render_summary_body, render_summary_line


def _stats(**kw) -> ValidationStats:
    base = dict(valid=3, warnings=1, errors=2, unique_meters=2, min_date="2024-01-01", max_date="2024-03-31")
    base.update(kw)
    return ValidationStats(**base)


def test_render_after_import():
    line = render_summary_line("r.csv", _stats(), FrozenImportOutcome(2, 1))
    assert line == (
        "SUMMARY file=r.csv rows=6 valid=3 warnings=1 errors=2 meters=2 "
        "dates=2024-01-01..2024-03-31 imported=2 failed=1"
    )


def test_render_without_import_and_dates():
    line = render_summary_line("r.xlsx", _stats(valid=0, unique_meters=0, min_date=None, max_date=None), None)
    assert line.endswith("meters=0 dates=- imported=- failed=-")


def test_body_is_line_without_label():
    stats = _stats()
    outcome = FrozenImportOutcome(3, 0)
    body = render_summary_body("r.csv", stats, outcome)
    assert body.startswith("file=r.csv ")
    assert render_summary_line("r.csv", stats, outcome) == f"SUMMARY {body}"
