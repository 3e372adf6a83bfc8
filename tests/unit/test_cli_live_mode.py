from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

from meter_import.cli import main as cli_main
from meter_import.errors import PersistenceError


def _live_conn() -> MagicMock:
    cur = MagicMock()
    cur.fetchall.return_value = [("m1", "STR-001"), ("m2", "GAS-001")]
    cur.fetchone.return_value = None
    cur.rowcount = 1
    conn = MagicMock()
    conn.cursor.return_value = cur
    return conn


def test_cli_live_mode_success(temp_workdir: Path, write_config: Path, capsys, monkeypatch):
    """Live DB path with a mocked psycopg2 connection."""
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    path = temp_workdir / "data" / "readings.csv"
    path.write_text("meter;date;value\nSTR-001;15.01.2024;1\nGAS-001;15.01.2024;2\n", encoding="utf-8")
    conn = _live_conn()

    with patch("meter_import.cli.__main__.open_connection", return_value=conn):
        code = cli_main([str(path)])

    out = capsys.readouterr().out
    assert code == 0
    assert "mode=live" in out
    assert "imported=2 failed=0" in out
    # 1 commit for the meter query + 1 per inserted row
    assert conn.commit.call_count == 3
    conn.close.assert_called_once()


def test_cli_live_insert_failure_is_partial(temp_workdir: Path, capsys, monkeypatch):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    path = temp_workdir / "data" / "readings.csv"
    path.write_text("meter;date;value\nSTR-001;15.01.2024;1\nGAS-001;15.01.2024;2\n", encoding="utf-8")
    conn = _live_conn()
    cur = conn.cursor.return_value

    def execute(sql, params=()):
        if sql.startswith("INSERT") and params[0] == "m2":
            raise RuntimeError("insert or update violates foreign key constraint")

    cur.execute.side_effect = execute
    with patch("meter_import.cli.__main__.open_connection", return_value=conn):
        code = cli_main([str(path)])

    out = capsys.readouterr().out
    assert code == 2
    assert "ERROR row=3 import failed:" in out
    assert "imported=1 failed=1" in out


def test_cli_connection_failure_falls_back_to_mock(temp_workdir: Path, meters_file: Path, capsys, monkeypatch):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    path = temp_workdir / "data" / "readings.csv"
    path.write_text("meter;date;value\nSTR-001;15.01.2024;1\n", encoding="utf-8")

    with patch("meter_import.cli.__main__.open_connection", side_effect=PersistenceError("connection failed")):
        code = cli_main([str(path), "--meters", str(meters_file)])

    out = capsys.readouterr().out
    assert code == 0
    assert "DB connection failed -> fallback to mock mode" in out
    assert "mode=mock meters=3" in out
