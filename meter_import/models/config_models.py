from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Config dataclasses for the meter reading importer.

Built by meter_import.config.loader from config/import.yml after schema
validation. Defaults here match an empty config file.
"""

__all__ = [
    "ConflictPolicy",
    "DatabaseConfig",
    "HeaderRuleConfig",
    "ImportConfig",
    "DEFAULT_MAX_FILE_SIZE",
]

DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MiB


class ConflictPolicy(Enum):
    """What to do with an existing (meter, date) reading when not overwriting.

    - REJECT: count the row as failed, keep the existing reading
    - DUPLICATE: insert anyway, leaving two readings for the same day
    """
    REJECT = "reject"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class HeaderRuleConfig:
    """Header matching tokens for one canonical field (lower-case)."""
    contains: tuple[str, ...] = ()
    equals: tuple[str, ...] = ()


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for the import process."""
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE
    overwrite_existing: bool = False
    conflict_policy: ConflictPolicy = ConflictPolicy.REJECT
    recorded_by: str | None = None  # 取込実行ユーザー (CLI --user で上書き)
    organization_id: str | None = None  # テナント絞り込み
    error_log_dir: str = "./logs"
    heuristics: dict[str, HeaderRuleConfig] = field(default_factory=dict)  # 空なら既定ルール
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
