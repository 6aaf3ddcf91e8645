"""
YAML and environment loading for poultry_config.

Layering (later wins):
    1. ``poultry_config/defaults.yaml`` shipped with the package.
    2. An optional YAML file passed by the caller.
    3. ``POULTRY_*`` environment variables.

Malformed YAML propagates ``yaml.YAMLError``; unknown keys and invalid
values raise ``ValueError`` from the schema.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from poultry_config.schema import EngineConfig

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

_TARIFF_ENV = {
    "POULTRY_WATER_TARIFF": "water_tariff",
    "POULTRY_ELECTRICITY_TARIFF": "electricity_tariff",
}

_DATABASE_ENV = {
    "POULTRY_DATABASE_URL": "url",
    "POULTRY_DATABASE_ECHO": "echo",
    "POULTRY_DATABASE_POOL_SIZE": "pool_size",
}

_TRUE = {"1", "true", "yes", "on"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load one YAML file as a dict (empty file -> empty dict).

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")
    return data


def tariff_overrides_from_env(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    env = os.environ if environ is None else environ
    return {key: env[var] for var, key in _TARIFF_ENV.items() if env.get(var)}


def database_overrides_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    env = os.environ if environ is None else environ
    out: dict[str, Any] = {}
    for var, key in _DATABASE_ENV.items():
        raw = env.get(var)
        if not raw:
            continue
        if key == "echo":
            out[key] = raw.strip().lower() in _TRUE
        elif key == "pool_size":
            try:
                out[key] = int(raw)
            except ValueError as exc:
                raise ValueError(f"{var} must be an integer, got {raw!r}") from exc
        else:
            out[key] = raw
    return out


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def load_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> EngineConfig:
    """Assemble the layered configuration into a validated EngineConfig."""
    data = load_yaml_file(DEFAULTS_PATH)
    source = "defaults"
    if path is not None:
        data = _merge(data, load_yaml_file(Path(path)))
        source = str(path)

    env_layer: dict[str, Any] = {}
    tariffs = tariff_overrides_from_env(environ)
    if tariffs:
        env_layer["tariffs"] = tariffs
    database = database_overrides_from_env(environ)
    if database:
        env_layer["database"] = database
    if env_layer:
        data = _merge(data, env_layer)
        source = f"{source}+env"

    return EngineConfig.from_dict(data, source=source)
