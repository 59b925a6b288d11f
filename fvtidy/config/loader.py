from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DeckConfig, DerivedTableConfig, HeaderSpec, TableSchema

"""Deck config loader.

Responsibilities:
- Load the YAML deck config (tables to extract, derived tables, level orderings)
- Validate it against the bundled JSON schema (deck_schema.json)
- Check cross references (unique names, derived sources declared earlier)
- Apply environment overrides (FVTIDY_WORKBOOK_DIR)
"""

__all__ = [
    "ConfigError",
    "load_config",
    "resolve_config_path",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
]

SCHEMA_PATH = Path(__file__).with_name("deck_schema.json")
DEFAULT_CONFIG_PATH = Path("config/deck.yml")
ENV_CONFIG = "FVTIDY_CONFIG"
ENV_WORKBOOK_DIR = "FVTIDY_WORKBOOK_DIR"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: the schema file is missing or not valid JSON, or the config
            fails validation (missing required keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"config validation failed at {where}: {e.message}") from e


def _header(raw: dict[str, Any] | None) -> HeaderSpec:
    raw = raw or {}
    defaults = HeaderSpec()
    return HeaderSpec(
        rows=raw.get("rows", defaults.rows),
        dimensions=tuple(raw.get("dimensions", defaults.dimensions)),
        separator=raw.get("separator", defaults.separator),
        pattern=raw.get("pattern"),
    )


def _table(raw: dict[str, Any]) -> TableSchema:
    column_names = raw.get("column_names")
    return TableSchema(
        name=raw["name"],
        workbook=raw["workbook"],
        sheet=raw["sheet"],
        range=raw["range"],
        header=_header(raw.get("header")),
        group_columns=tuple(raw.get("group_columns", ())),
        value_name=raw.get("value_name", "value"),
        has_header=raw.get("has_header", True),
        column_names=tuple(column_names) if column_names is not None else None,
        exclude=tuple(raw.get("exclude", ())),
    )


def _derived(raw: dict[str, Any]) -> DerivedTableConfig:
    if "join" in raw:
        j = raw["join"]
        return DerivedTableConfig(
            name=raw["name"], kind="join", sources=(j["left"], j["right"]), keys=tuple(j["on"])
        )
    a = raw["aggregate"]
    return DerivedTableConfig(
        name=raw["name"],
        kind="aggregate",
        sources=(a["source"],),
        keys=tuple(a["by"]),
        op=a["op"],
        value_column=a.get("value"),
    )


def _check_references(cfg: DeckConfig) -> None:
    declared: set[str] = set()
    for t in cfg.tables:
        if t.name in declared:
            raise ConfigError(f"duplicate table name: {t.name}")
        if not t.has_header and t.header.rows:
            raise ConfigError(f"table {t.name}: has_header is false but header.rows={t.header.rows}")
        clash = set(t.group_columns) & set(t.header.dimensions)
        if clash or t.value_name in t.key_columns:
            raise ConfigError(f"table {t.name}: column names used twice: {sorted(clash or {t.value_name})}")
        declared.add(t.name)
    for d in cfg.derived:
        if d.name in declared:
            raise ConfigError(f"duplicate table name: {d.name}")
        unknown = [s for s in d.sources if s not in declared]
        if unknown:
            # 宣言順に評価するため前方参照のみ許可
            raise ConfigError(f"derived table {d.name} references undeclared tables: {unknown}")
        declared.add(d.name)


def resolve_config_path(cli_path: Path | None = None) -> Path:
    """CLI argument > FVTIDY_CONFIG > config/deck.yml."""
    if cli_path is not None:
        return cli_path
    env = os.getenv(ENV_CONFIG)
    return Path(env) if env else DEFAULT_CONFIG_PATH


def load_config(path: Path) -> DeckConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    cfg = DeckConfig(
        workbook_directory=os.getenv(ENV_WORKBOOK_DIR) or data["workbook_directory"],
        tables=tuple(_table(t) for t in data["tables"]),
        derived=tuple(_derived(d) for d in data.get("derived", ())),
        levels={k: tuple(v) for k, v in data.get("levels", {}).items()},
        mean_precision=data.get("mean_precision", 1),
        output_directory=data.get("output_directory", "./out"),
        keep_na_strings=tuple(data.get("keep_na_strings", ())),
    )
    _check_references(cfg)
    return cfg
