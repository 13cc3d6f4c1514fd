from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from sales_import.models.config_models import DEFAULT_STAFF_TAG_PATTERN, ImportConfig, ParserConfig
from sales_import.models.roster import RosterEntry

"""Config and roster loaders.

Responsibilities:
- Load YAML config (config/import.yml) and the staff roster YAML
- Validate both against the JSON schemas shipped next to this module
- Apply defaults for every optional key
"""

__all__ = [
    "CONFIG_SCHEMA_PATH",
    "ROSTER_SCHEMA_PATH",
    "ConfigError",
    "load_config",
    "load_roster",
]

_here = Path(__file__).parent
CONFIG_SCHEMA_PATH = _here / "config_schema.json"
ROSTER_SCHEMA_PATH = _here / "roster_schema.json"


class ConfigError(Exception):
    pass


def _validate(data: Any, schema_path: Path) -> None:
    """Validate loaded YAML data against a JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            data fails schema validation (missing required keys, wrong types,
            unknown keys).
    """
    if not schema_path.exists():
        raise ConfigError(f"config schema not found: {schema_path}")
    try:
        schema = json.loads(schema_path.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _read_yaml(path: Path) -> Any:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e


def load_config(path: Path) -> ImportConfig:
    data = _read_yaml(path) or {}
    _validate(data, CONFIG_SCHEMA_PATH)

    synonyms = {k: tuple(v) for k, v in (data.get("header_synonyms") or {}).items()}
    try:
        parser = ParserConfig(
            prefer_net_over_gross=data.get("prefer_net_over_gross", True),
            date_order=data.get("date_order", "DMY"),
            staff_tag_pattern=data.get("staff_tag_pattern", DEFAULT_STAFF_TAG_PATTERN),
            exclude_channels=tuple(data.get("exclude_channels") or ()),
            header_synonyms=synonyms,
            delimiter=data.get("delimiter"),
        )
    except (ValueError, re.error) as e:
        raise ConfigError(f"config validation failed: {e}") from e
    return ImportConfig(
        parser=parser,
        roster_file=data.get("roster_file"),
        output_directory=data.get("output_directory"),
    )


def load_roster(path: Path) -> list[RosterEntry]:
    """Load the staff roster YAML into RosterEntry values (file order kept)."""
    data = _read_yaml(path)
    _validate(data, ROSTER_SCHEMA_PATH)
    return [
        RosterEntry(
            identifier=str(item["identifier"]),
            display_name=item["display_name"],
            user_id=item["user_id"],
        )
        for item in data["staff"]
    ]
