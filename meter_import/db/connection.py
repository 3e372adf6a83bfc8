from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from ..errors import PersistenceError
from ..models.config_models import DatabaseConfig

"""psycopg2 connection handling.

Connection parameter priority:
    1. `.env` (loaded with override=True by load_env_file)
    2. process environment: DATABASE_URL / PGDSN for a full DSN, otherwise
       PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. the `database` section of config/import.yml
"""

logger = logging.getLogger(__name__)

__all__ = [
    "build_dsn",
    "load_env_file",
    "open_connection",
]


def load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; a failure only logs a warning."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except Exception as e:  # pragma: no cover
        logger.warning("failed to load .env via python-dotenv: %s", e)


def build_dsn(db_cfg: DatabaseConfig) -> str:
    dsn_env = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn_env:
        return dsn_env
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def open_connection(db_cfg: DatabaseConfig) -> Any:
    """Connect with autocommit off (PgReadingStore commits per imported row).

    Raises:
        PersistenceError: the server is unreachable or rejected the login
    """
    try:
        conn = psycopg2.connect(build_dsn(db_cfg))
    except psycopg2.Error as e:
        raise PersistenceError(f"connection failed: {e}") from e
    conn.autocommit = False
    return conn

