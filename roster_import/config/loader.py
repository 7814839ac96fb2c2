from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_BIRTHDATE_ALIASES,
    DEFAULT_NAME_ALIASES,
    DatabaseConfig,
    FieldAliases,
    ImportConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config/import.yml
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults for every optional key
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails schema validation.
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


def load_config(path: Path, *, required: bool = True) -> ImportConfig:
    """Load and validate the import configuration.

    With ``required=False`` a missing file yields the built-in defaults, so
    the CLI works without any config file.
    """
    if not path.exists():
        if required:
            raise ConfigError(f"config file not found: {path}")
        return ImportConfig()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    aliases_raw = data.get("aliases", {})
    aliases = FieldAliases(
        name=tuple(aliases_raw.get("name", DEFAULT_NAME_ALIASES)),
        birthdate=tuple(aliases_raw.get("birthdate", DEFAULT_BIRTHDATE_ALIASES)),
    )
    csv_raw = data.get("csv", {})
    db_raw = data.get("database", {})
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(
        table=data.get("table", "students"),
        aliases=aliases,
        delimiter=csv_raw.get("delimiter", ","),
        encoding=csv_raw.get("encoding", "utf-8-sig"),
        duplicate_display_limit=data.get("duplicate_display_limit", 10),
        database=db,
    )
