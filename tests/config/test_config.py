"""
Configuration layering: packaged defaults, YAML overrides, environment.
"""

from decimal import Decimal

import pytest
import yaml

from poultry_config import DatabaseConfig, EngineConfig, TariffConfig, get_active_config
from poultry_config.loader import load_config, load_yaml_file
from poultry_kernel.services import UtilityTariffs


class TestTariffConfig:
    def test_defaults(self):
        tariffs = TariffConfig()

        assert tariffs.water_tariff == Decimal("1000")
        assert tariffs.electricity_tariff == Decimal("800")

    def test_strings_become_decimals(self):
        tariffs = TariffConfig(water_tariff="1.25", electricity_tariff=2)

        assert tariffs.water_tariff == Decimal("1.25")
        assert tariffs.electricity_tariff == Decimal("2")

    @pytest.mark.parametrize("value", [0, "-1"])
    def test_must_be_positive(self, value):
        with pytest.raises(ValueError, match="must be positive"):
            TariffConfig(water_tariff=value)

    def test_must_be_numeric(self):
        with pytest.raises(ValueError, match="must be numeric"):
            TariffConfig(electricity_tariff="cheap")

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown tariff key"):
            TariffConfig.from_dict({"gas_tariff": "5"})

    def test_satisfies_kernel_protocol(self):
        tariffs: UtilityTariffs = TariffConfig()

        assert tariffs.water_tariff > 0

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "farm.yaml"
        path.write_text(yaml.safe_dump({"tariffs": {"water_tariff": "1200"}}))

        tariffs = TariffConfig.from_yaml(path)

        assert tariffs.water_tariff == Decimal("1200")
        assert tariffs.electricity_tariff == Decimal("800")

    def test_from_env(self):
        tariffs = TariffConfig.from_env({"POULTRY_ELECTRICITY_TARIFF": "950"})

        assert tariffs.electricity_tariff == Decimal("950")
        assert tariffs.water_tariff == Decimal("1000")


class TestDatabaseConfig:
    def test_pool_size_validated(self):
        with pytest.raises(ValueError, match="pool_size"):
            DatabaseConfig(pool_size=0)

    def test_empty_url_rejected(self):
        with pytest.raises(ValueError):
            DatabaseConfig(url="")


class TestLoader:
    def test_packaged_defaults(self):
        config = load_config(environ={})

        assert config.source == "defaults"
        assert config.tariffs == TariffConfig()
        assert config.database.url.startswith("postgresql://")

    def test_layers(self, tmp_path):
        path = tmp_path / "farm.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "tariffs": {"water_tariff": "1100"},
                    "database": {"url": "sqlite://", "pool_size": 2},
                }
            )
        )

        config = load_config(
            path,
            environ={"POULTRY_WATER_TARIFF": "1300", "POULTRY_DATABASE_ECHO": "yes"},
        )

        assert config.source == f"{path}+env"
        assert config.tariffs.water_tariff == Decimal("1300")
        assert config.database.url == "sqlite://"
        assert config.database.pool_size == 2
        assert config.database.echo is True

    def test_bad_pool_size_env(self):
        with pytest.raises(ValueError, match="must be an integer"):
            load_config(environ={"POULTRY_DATABASE_POOL_SIZE": "many"})

    def test_unknown_root_key(self, tmp_path):
        path = tmp_path / "farm.yaml"
        path.write_text(yaml.safe_dump({"metrics": {"enabled": True}}))

        with pytest.raises(ValueError, match="Unknown config key"):
            load_config(path, environ={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml", environ={})

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ValueError, match="must be a mapping"):
            load_yaml_file(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_yaml_file(path) == {}


def test_get_active_config_logs_trace(captured_logs):
    config = get_active_config(environ={"POULTRY_WATER_TARIFF": "1500"})

    assert isinstance(config, EngineConfig)
    assert config.tariffs.water_tariff == Decimal("1500")
    trace = [r for r in captured_logs() if r["message"] == "POULTRY_CONFIG_TRACE"]
    assert trace and trace[0]["water_tariff"] == "1500"
    assert trace[0]["config_source"] == "defaults+env"
