"""
poultry_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Services receive the pieces they need (the
    utility tariffs, the database settings) by constructor injection;
    nothing in the engine reads a global constant or the environment.

Architecture position:
    Configuration -- sits above ``poultry_kernel`` and below
    ``poultry_services``.  The kernel MUST NEVER import from
    ``poultry_config``; ``TariffConfig`` satisfies the kernel's
    ``UtilityTariffs`` protocol structurally.

Invariants enforced:
    - Tariffs are positive Decimals.
    - Unknown configuration keys are rejected, not ignored.

Failure modes:
    - ``FileNotFoundError`` -- an explicit config path does not exist.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``POULTRY_CONFIG_TRACE`` log entry naming the source layers and the
    tariffs in force.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

from poultry_config.loader import load_config
from poultry_config.schema import DatabaseConfig, EngineConfig, TariffConfig

_logger = logging.getLogger("poultry_kernel.config")


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> EngineConfig:
    """
    The ONLY public configuration entrypoint.

    Args:
        config_path: Optional YAML file layered over the packaged defaults.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        A frozen ``EngineConfig``.
    """
    config = load_config(config_path, environ)
    _logger.info(
        "POULTRY_CONFIG_TRACE",
        extra={
            "trace_type": "POULTRY_CONFIG_TRACE",
            "config_source": config.source,
            "water_tariff": str(config.tariffs.water_tariff),
            "electricity_tariff": str(config.tariffs.electricity_tariff),
        },
    )
    return config


__all__ = [
    "DatabaseConfig",
    "EngineConfig",
    "TariffConfig",
    "get_active_config",
]
