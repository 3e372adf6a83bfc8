from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pandas as pd

from meter_import.cli import main as cli_main
from meter_import.db.memory import InMemoryReadingStore
from meter_import.services.wizard import ImportWizard, WizardStep


def _make_excel(path: Path, rows: list[list[object]]) -> Path:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Ablesungen", header=False, index=False)
        pd.DataFrame([["ignored"], ["sheet"]]).to_excel(writer, sheet_name="Info", header=False, index=False)
    return path


def test_xlsx_end_to_end_via_cli(temp_workdir: Path, write_config: Path, meters_file: Path, capsys):
    path = _make_excel(
        temp_workdir / "data" / "readings.xlsx",
        [
            ["Zählernummer", "Datum", "Stand", "Notiz"],
            ["STR-001", "15.01.2024", "12345,67", "Jahresablesung"],
            ["GAS-001", datetime(2024, 2, 15), 5678.9, None],
            ["WAS-001", "2024-03-15", 42, None],
        ],
    )
    code = cli_main([str(path), "--meters", str(meters_file)])
    out = capsys.readouterr().out
    assert code == 0
    assert (
        "SUMMARY file=readings.xlsx rows=3 valid=3 warnings=0 errors=0 meters=3 "
        "dates=2024-01-15..2024-03-15 imported=3 failed=0"
    ) in out


def test_three_valid_rows_via_wizard(directory):
    """3 valid rows, no overwrite: 3 imported and progress 33 / 67 / 100."""
    data = (
        "Zählernummer;Datum;Stand\n"
        "STR-001;15.01.2024;1\n"
        "GAS-001;15.01.2024;2\n"
        "WAS-001;15.01.2024;3\n"
    ).encode("utf-8")
    store = InMemoryReadingStore()
    wizard = ImportWizard(directory, store, "user-1")
    wizard.upload(data, "readings.csv")
    wizard.validate()
    wizard.confirm(overwrite_existing=False)
    seen: list[int] = []
    outcome = wizard.run_import(on_progress=seen.append)

    assert wizard.step is WizardStep.RESULT
    assert (outcome.success_count, outcome.failure_count) == (3, 0)
    assert seen == [33, 67, 100]
    assert [r.value for r in store.readings] == [1.0, 2.0, 3.0]


def test_mixed_validity_imports_only_valid_rows(directory):
    data = (
        "Zählernummer;Datum;Stand\n"
        "STR-001;15.01.2024;1\n"
        ";15.01.2024;2\n"
        "GAS-001;15.01.2024;3\n"
    ).encode("utf-8")
    store = InMemoryReadingStore()
    wizard = ImportWizard(directory, store, "user-1")
    wizard.upload(data, "readings.csv")
    stats = wizard.validate()
    assert (stats.valid, stats.errors) == (2, 1)
    wizard.confirm()
    outcome = wizard.run_import()
    assert outcome.total == 2
    assert [r.meter_id for r in store.readings] == ["m1", "m2"]
