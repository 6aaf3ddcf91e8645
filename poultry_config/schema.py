"""
Configuration schema for the farm finance engine.

Frozen, self-validating dataclasses.  YAML files and environment variables
are parsed into these types by ``poultry_config.loader``; the runtime only
ever sees the validated objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping

from poultry_kernel.domain.values import ZERO, to_decimal


def _reject_unknown(section: str, data: Mapping[str, Any], allowed: set[str]) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValueError(f"Unknown {section} key(s): {', '.join(unknown)}")


# ---------------------------------------------------------------------------
# Tariffs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TariffConfig:
    """
    Per-unit utility prices used to derive utility expenses.

    Guarantees:
        - Both tariffs are positive Decimals.
    """

    water_tariff: Decimal = Decimal("1000")
    electricity_tariff: Decimal = Decimal("800")

    def __post_init__(self) -> None:
        for name in ("water_tariff", "electricity_tariff"):
            try:
                value = to_decimal(getattr(self, name))
            except ValueError as exc:
                raise ValueError(f"{name} must be numeric") from exc
            if value <= ZERO:
                raise ValueError(f"{name} must be positive, got {value}")
            object.__setattr__(self, name, value)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> TariffConfig:
        data = dict(data or {})
        _reject_unknown("tariff", data, {"water_tariff", "electricity_tariff"})
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Path | str) -> TariffConfig:
        """Read the ``tariffs`` mapping of a YAML file."""
        from poultry_config.loader import load_yaml_file

        return cls.from_dict(load_yaml_file(Path(path)).get("tariffs"))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TariffConfig:
        """Defaults overridden by POULTRY_WATER_TARIFF / POULTRY_ELECTRICITY_TARIFF."""
        from poultry_config.loader import tariff_overrides_from_env

        return cls.from_dict(tariff_overrides_from_env(environ))


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite:///:memory:"
    echo: bool = False
    pool_size: int = 5

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("database url must not be empty")
        if int(self.pool_size) < 1:
            raise ValueError(f"pool_size must be >= 1, got {self.pool_size}")
        object.__setattr__(self, "pool_size", int(self.pool_size))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> DatabaseConfig:
        data = dict(data or {})
        _reject_unknown("database", data, {"url", "echo", "pool_size"})
        return cls(**data)


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfig:
    """The sole runtime configuration artifact."""

    tariffs: TariffConfig = field(default_factory=TariffConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    source: str = "defaults"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None, source: str = "dict") -> EngineConfig:
        data = dict(data or {})
        _reject_unknown("config", data, {"tariffs", "database"})
        return cls(
            tariffs=TariffConfig.from_dict(data.get("tariffs")),
            database=DatabaseConfig.from_dict(data.get("database")),
            source=source,
        )
