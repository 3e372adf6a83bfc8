from __future__ import annotations

import logging
from typing import Any

from ..errors import PersistenceError
from ..models.reading import MeterRef, Reading

"""PostgreSQL adapters (psycopg2 connection) for the meter directory and readings.

Tables:
    meters(id, meter_number, organization_id, ...)
    meter_readings(id, meter_id, reading_value, reading_date, notes, recorded_by, ...)

Each imported row is its own transaction: delete_by() (overwrite mode) leaves
the transaction open and insert() commits it, so a failed insert also restores
the deleted reading. Any driver error rolls back and is re-raised as
PersistenceError.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "PgMeterDirectory",
    "PgReadingStore",
]

READINGS_TABLE = "meter_readings"
METERS_TABLE = "meters"


class PgMeterDirectory:
    """Read-only meter list, optionally scoped to one organization (tenant)."""

    def __init__(self, conn: Any, organization_id: str | None = None, table: str = METERS_TABLE) -> None:
        self.conn = conn
        self.organization_id = organization_id
        self.table = table
        self._cache: list[MeterRef] | None = None

    def meters(self) -> list[MeterRef]:
        if self._cache is None:
            self._cache = self._load()
        return self._cache

    def refresh(self) -> None:
        self._cache = None

    def _load(self) -> list[MeterRef]:
        sql = f"SELECT id, meter_number FROM {self.table}"
        params: tuple[Any, ...] = ()
        if self.organization_id is not None:
            sql += " WHERE organization_id = %s"
            params = (self.organization_id,)
        cur = self.conn.cursor()
        try:
            cur.execute(sql, params)
            rows = cur.fetchall()
            # 読み取りのみだがトランザクションを閉じておく
            self.conn.commit()
        except Exception as e:
            self.conn.rollback()
            raise PersistenceError(f"failed loading meters: {e}") from e
        finally:
            cur.close()
        meters = [MeterRef(id=str(r[0]), meter_number=str(r[1])) for r in rows if r[1] is not None]
        logger.debug("loaded meters=%d organization=%s", len(meters), self.organization_id)
        return meters


class PgReadingStore:
    """Reading persistence backed by a psycopg2 connection (autocommit off)."""

    def __init__(self, conn: Any, table: str = READINGS_TABLE) -> None:
        self.conn = conn
        self.table = table

    def _execute(self, sql: str, params: tuple[Any, ...], *, commit: bool, fetch: bool = False) -> Any:
        cur = self.conn.cursor()
        try:
            cur.execute(sql, params)
            result = cur.fetchone() if fetch else cur.rowcount
            if commit:
                self.conn.commit()
            return result
        except Exception as e:
            try:
                self.conn.rollback()
            except Exception:  # pragma: no cover
                logger.debug("rollback failed", exc_info=True)
            raise PersistenceError(str(e)) from e
        finally:
            cur.close()

    def delete_by(self, meter_id: str, date: str) -> int:
        rowcount = self._execute(
            f"DELETE FROM {self.table} WHERE meter_id = %s AND reading_date = %s",
            (meter_id, date),
            commit=False,
        )
        return max(rowcount or 0, 0)

    def exists(self, meter_id: str, date: str) -> bool:
        row = self._execute(
            f"SELECT 1 FROM {self.table} WHERE meter_id = %s AND reading_date = %s LIMIT 1",
            (meter_id, date),
            commit=False,
            fetch=True,
        )
        return row is not None

    def insert(self, reading: Reading) -> None:
        self._execute(
            f"INSERT INTO {self.table} (meter_id, reading_value, reading_date, notes, recorded_by) "
            "VALUES (%s, %s, %s, %s, %s)",
            (reading.meter_id, reading.value, reading.date, reading.note, reading.recorded_by),
            commit=True,
        )
