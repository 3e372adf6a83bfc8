from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_MAX_FILE_SIZE,
    ConflictPolicy,
    DatabaseConfig,
    HeaderRuleConfig,
    ImportConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (default config/import.yml)
- Validate against config_schema.json (shipped next to this module)
- Apply defaults for every omitted key
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: schema file missing / not valid JSON, or the config data
            fails schema validation (unknown keys, wrong types, ...)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def config_from_dict(data: dict[str, Any]) -> ImportConfig:
    """Build ImportConfig from already parsed config data (validated first)."""
    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    heuristics = {
        name: HeaderRuleConfig(
            contains=tuple(rule.get("contains", ())),
            equals=tuple(rule.get("equals", ())),
        )
        for name, rule in (data.get("heuristics") or {}).items()
    }
    return ImportConfig(
        max_file_size_bytes=data.get("max_file_size_bytes", DEFAULT_MAX_FILE_SIZE),
        overwrite_existing=data.get("overwrite_existing", False),
        conflict_policy=ConflictPolicy(data.get("conflict_policy", ConflictPolicy.REJECT.value)),
        recorded_by=data.get("recorded_by"),
        organization_id=data.get("organization_id"),
        error_log_dir=data.get("error_log_dir", "./logs"),
        heuristics=heuristics,
        database=db,
    )


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    return config_from_dict(data)
