# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pytest

from meter_import.db.memory import InMemoryMeterDirectory, InMemoryReadingStore
from meter_import.logging.init import reset_logging
from meter_import.models.reading import MeterRef


@pytest.fixture(autouse=True)
def _fresh_logging():
    # setup_logging はグローバルロガーを保持するので capsys 差し替えに追従させる
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """max_file_size_bytes: 5242880
overwrite_existing: false
conflict_policy: reject
recorded_by: user-1
error_log_dir: ./logs
heuristics:
  value:
    contains: [stand, reading]
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def known_meters() -> list[MeterRef]:
    return [
        MeterRef(id="m1", meter_number="STR-001"),
        MeterRef(id="m2", meter_number="GAS-001"),
        MeterRef(id="m3", meter_number="WAS-001"),
    ]


@pytest.fixture()
def directory(known_meters) -> InMemoryMeterDirectory:
    return InMemoryMeterDirectory(known_meters)


@pytest.fixture()
def store() -> InMemoryReadingStore:
    return InMemoryReadingStore()


@pytest.fixture()
def meters_file(temp_workdir: Path) -> Path:
    p = temp_workdir / "data" / "meters.csv"
    p.write_text("id;meter_number\nm1;STR-001\nm2;GAS-001\nm3;WAS-001\n", encoding="utf-8")
    return p

