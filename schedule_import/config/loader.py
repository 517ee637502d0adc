from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DEFAULT_REGIONAL_SUFFIXES, DatabaseConfig, ImportConfig, ImportSettings

"""Config loader.

Responsibilities:
- Load the YAML config (default ``config/import.yml``)
- Validate it against ``contracts/config_schema.json``
- Apply defaults (timezone=UTC, date_order=MDY, country/city, ...)
"""

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "contracts" / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing/invalid, or the data violates it
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


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    tz = data.get("timezone", "UTC")
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone: {tz}") from e

    defaults = data.get("defaults") or {}
    suffixes = data.get("regional_time_suffixes")
    settings = ImportSettings(
        timezone=tz,
        date_order=data.get("date_order", "MDY"),
        default_country=defaults.get("country", "Perú"),
        default_city=defaults.get("city", "Lima"),
        regional_time_suffixes=tuple(suffixes) if suffixes is not None else DEFAULT_REGIONAL_SUFFIXES,
    )

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(
        tenant_id=str(data["tenant_id"]),
        settings=settings,
        error_log_dir=data.get("error_log_dir", "logs"),
        database=db,
    )
