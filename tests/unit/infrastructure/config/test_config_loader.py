"""Behavior tests for configuration loading functionality."""

import tempfile
from pathlib import Path

import pytest
import yaml

from trade_ledger.infrastructure.config.loader import ConfigLoader
from trade_ledger.infrastructure.config.models import EngineConfig


def write_config(config_data) -> Path:
    """Write config data to a temporary YAML file."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(config_data, f)
        return Path(f.name)


class TestConfigLoader:
    """Test configuration loading behavior."""

    def test_load_engine_config(self):
        """Test loading explicit engine flags.

        Given - A YAML config with both engine flags turned off
        When - Config loader reads the file
        Then - Engine config reflects the file
        """
        config_path = write_config(
            {
                "engine": {
                    "futures_fee_redirect": False,
                    "simulate_borrowing": False,
                    "manual_exchange": "Other",
                    "leveraged_markets": ["Isolated Margin"],
                }
            }
        )

        try:
            engine_config = ConfigLoader(config_path).get_engine_config()

            assert isinstance(engine_config, EngineConfig)
            assert engine_config.futures_fee_redirect is False
            assert engine_config.simulate_borrowing is False
            assert engine_config.leveraged_markets == ["Isolated Margin"]
        finally:
            config_path.unlink()

    def test_missing_engine_section_uses_defaults(self):
        """Test that a missing engine section falls back to defaults."""
        config_path = write_config({"other_section": {"some_value": 123}})

        try:
            engine_config = ConfigLoader(config_path).get_engine_config()

            assert engine_config == EngineConfig()
            assert engine_config.leveraged_markets == [
                "Cross Margin",
                "Isolated Margin",
            ]
        finally:
            config_path.unlink()

    def test_non_boolean_flag_rejected(self):
        """Test engine flags must be booleans."""
        config_path = write_config({"engine": {"simulate_borrowing": "yes"}})

        try:
            with pytest.raises(ValueError, match="simulate_borrowing"):
                ConfigLoader(config_path).get_engine_config()
        finally:
            config_path.unlink()

    def test_unknown_leveraged_market_rejected(self):
        """Test leveraged markets must be known markets."""
        config_path = write_config({"engine": {"leveraged_markets": ["Perps"]}})

        try:
            with pytest.raises(ValueError, match="Unknown leveraged markets"):
                ConfigLoader(config_path).get_engine_config()
        finally:
            config_path.unlink()

    def test_fee_table_from_config(self):
        """Test the fees section replaces the built-in table."""
        config_path = write_config(
            {"fees": {"Binance": {"Spot": {"maker": 0.0009, "taker": 0.001}}}}
        )

        try:
            fee_table = ConfigLoader(config_path).get_fee_table()

            assert list(fee_table) == ["Binance"]
            assert fee_table["Binance"]["Spot"].maker == 0.0009
        finally:
            config_path.unlink()

    def test_missing_fees_section_uses_built_in_table(self):
        """Test the built-in table is used without a fees section."""
        config_path = write_config({"engine": {}})

        try:
            fee_table = ConfigLoader(config_path).get_fee_table()

            assert fee_table["Bybit"]["Futures"].taker == 0.0006
        finally:
            config_path.unlink()

    def test_load_caches_data(self):
        """Test the file is read once."""
        config_path = write_config({"engine": {"simulate_borrowing": True}})

        try:
            loader = ConfigLoader(config_path)
            first = loader.load()
            config_path.write_text("engine: {simulate_borrowing: false}\n")

            assert loader.load() is first
        finally:
            config_path.unlink()

    def test_empty_file_loads_as_empty_dict(self):
        """Test an empty file behaves like an empty config."""
        config_path = write_config(None)
        config_path.write_text("")

        try:
            assert ConfigLoader(config_path).get_engine_config() == EngineConfig()
        finally:
            config_path.unlink()

    def test_missing_file_raises(self):
        """Test a missing file raises FileNotFoundError."""
        loader = ConfigLoader(Path("/nonexistent/trade_ledger.yaml"))

        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            loader.load()

    def test_malformed_yaml_raises(self):
        """Test malformed YAML raises yaml.YAMLError."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("engine: [unclosed\n")
            config_path = Path(f.name)

        try:
            with pytest.raises(yaml.YAMLError):
                ConfigLoader(config_path).load()
        finally:
            config_path.unlink()

    def test_env_var_overrides_default_path(self, monkeypatch):
        """Test TRADE_LEDGER_CONFIG selects the config file."""
        config_path = write_config({"engine": {"simulate_borrowing": False}})
        monkeypatch.setenv("TRADE_LEDGER_CONFIG", str(config_path))

        try:
            loader = ConfigLoader()

            assert loader.config_path == config_path
            assert loader.get_engine_config().simulate_borrowing is False
        finally:
            config_path.unlink()

    def test_default_path(self, monkeypatch):
        """Test the default path without an override."""
        monkeypatch.delenv("TRADE_LEDGER_CONFIG", raising=False)

        assert ConfigLoader().config_path == Path("config/default.yaml")
