from __future__ import annotations

from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from meter_import.db.connection import build_dsn, open_connection
from meter_import.db.reading_store import PgMeterDirectory, PgReadingStore
from meter_import.errors import PersistenceError
from meter_import.models.config_models import DatabaseConfig
from meter_import.models.reading import MeterRef, Reading


def _conn(cursor: MagicMock) -> MagicMock:
    conn = MagicMock()
    conn.cursor.return_value = cursor
    return conn


def test_insert_commits_each_row():
    cur = MagicMock()
    conn = _conn(cur)
    PgReadingStore(conn).insert(Reading("m1", 12.5, "2024-01-15", "n", "user-1"))
    sql, params = cur.execute.call_args.args
    assert sql.startswith("INSERT INTO meter_readings (meter_id, reading_value, reading_date, notes, recorded_by)")
    assert params == ("m1", 12.5, "2024-01-15", "n", "user-1")
    conn.commit.assert_called_once()
    cur.close.assert_called_once()


def test_delete_leaves_transaction_open():
    cur = MagicMock()
    cur.rowcount = 2
    conn = _conn(cur)
    assert PgReadingStore(conn).delete_by("m1", "2024-01-15") == 2
    assert "DELETE FROM meter_readings" in cur.execute.call_args.args[0]
    conn.commit.assert_not_called()


def test_delete_without_match_returns_zero():
    cur = MagicMock()
    cur.rowcount = 0
    assert PgReadingStore(_conn(cur)).delete_by("m1", "2024-01-15") == 0


def test_exists():
    cur = MagicMock()
    cur.fetchone.return_value = (1,)
    assert PgReadingStore(_conn(cur)).exists("m1", "2024-01-15") is True
    cur.fetchone.return_value = None
    assert PgReadingStore(_conn(cur)).exists("m1", "2024-01-15") is False


def test_driver_error_rolls_back_and_raises_persistence_error():
    cur = MagicMock()
    cur.execute.side_effect = psycopg2.IntegrityError("violates foreign key constraint")
    conn = _conn(cur)
    with pytest.raises(PersistenceError) as exc:
        PgReadingStore(conn).insert(Reading("m1", 1.0, "2024-01-15", None, None))
    assert "foreign key" in str(exc.value)
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()


def test_failed_insert_after_delete_rolls_back_the_delete():
    cur = MagicMock()
    cur.rowcount = 1

    def execute(sql, params=()):
        if sql.startswith("INSERT"):
            raise psycopg2.OperationalError("server closed the connection")

    cur.execute.side_effect = execute
    conn = _conn(cur)
    store = PgReadingStore(conn)
    assert store.delete_by("m1", "2024-01-15") == 1
    with pytest.raises(PersistenceError):
        store.insert(Reading("m1", 2.0, "2024-01-15", None, "u"))

    # delete and insert share one transaction; nothing was committed
    conn.commit.assert_not_called()
    conn.rollback.assert_called_once()


def test_meter_directory_scoped_and_cached():
    cur = MagicMock()
    cur.fetchall.return_value = [(1, "STR-001"), (2, None), ("m3", "WAS-001")]
    conn = _conn(cur)
    directory = PgMeterDirectory(conn, organization_id="org-1")
    assert directory.meters() == [MeterRef("1", "STR-001"), MeterRef("m3", "WAS-001")]
    sql, params = cur.execute.call_args.args
    assert sql.endswith("WHERE organization_id = %s")
    assert params == ("org-1",)

    directory.meters()
    assert cur.execute.call_count == 1
    directory.refresh()
    directory.meters()
    assert cur.execute.call_count == 2


def test_meter_directory_unscoped_query():
    cur = MagicMock()
    cur.fetchall.return_value = []
    PgMeterDirectory(_conn(cur)).meters()
    assert cur.execute.call_args.args == ("SELECT id, meter_number FROM meters", ())


def test_meter_directory_failure():
    cur = MagicMock()
    cur.execute.side_effect = psycopg2.OperationalError("gone")
    conn = _conn(cur)
    with pytest.raises(PersistenceError):
        PgMeterDirectory(conn).meters()
    conn.rollback.assert_called_once()


def test_build_dsn_env_precedence(monkeypatch):
    for var in ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"):
        monkeypatch.delenv(var, raising=False)
    cfg = DatabaseConfig(host="cfg-host", port=6543, user="u", password="p", database="d")
    assert build_dsn(cfg) == "host=cfg-host port=6543 user=u dbname=d password=p"
    monkeypatch.setenv("PGHOST", "env-host")
    assert build_dsn(cfg).startswith("host=env-host port=6543")
    monkeypatch.setenv("DATABASE_URL", "postgresql://x@y/z")
    assert build_dsn(cfg) == "postgresql://x@y/z"


def test_open_connection_wraps_driver_error():
    with patch("meter_import.db.connection.psycopg2.connect", side_effect=psycopg2.OperationalError("refused")):
        with pytest.raises(PersistenceError):
            open_connection(DatabaseConfig())


def test_open_connection_disables_autocommit():
    conn = MagicMock()
    with patch("meter_import.db.connection.psycopg2.connect", return_value=conn):
        assert open_connection(DatabaseConfig()) is conn
    assert conn.autocommit is False
