"""Configuration loading utilities.

This module provides functionality to load and parse YAML configuration files,
with support for defaults and validation.
"""

import os
from pathlib import Path
from typing import Dict, Optional

import yaml

from ...domain.positions.fee_config import (
    FeeTable,
    get_default_fee_table,
    load_fee_table_from_config,
)
from ...domain.positions.models import Market
from .models import EngineConfig

CONFIG_ENV_VAR = "TRADE_LEDGER_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/default.yaml")


class ConfigLoader:
    """Loads and manages application configuration from YAML files.

    This class provides a centralized way to load configuration from YAML files,
    with caching to avoid repeated file I/O.

    Parameters
    ----------
    config_path : Optional[Path]
        Path to the configuration file. If None, uses the path in the
        ``TRADE_LEDGER_CONFIG`` environment variable, falling back to
        "config/default.yaml"

    Attributes
    ----------
    config_path : Path
        The path to the configuration file
    _config_data : Optional[Dict]
        Cached configuration data
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize the config loader with a path."""
        if config_path is None:
            env_path = os.environ.get(CONFIG_ENV_VAR)
            config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
        self.config_path = Path(config_path)
        self._config_data: Optional[Dict] = None

    def load(self) -> Dict:
        """Load raw configuration data from YAML file.

        Loads the YAML file and caches the result. Subsequent calls
        return the cached data.

        Returns
        -------
        Dict
            The parsed YAML configuration as a dictionary

        Raises
        ------
        FileNotFoundError
            If the configuration file doesn't exist
        yaml.YAMLError
            If the YAML file is malformed
        """
        if self._config_data is None:
            if not self.config_path.exists():
                raise FileNotFoundError(
                    f"Configuration file not found: {self.config_path}"
                )

            with open(self.config_path) as f:
                try:
                    self._config_data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise yaml.YAMLError(
                        f"Failed to parse config file {self.config_path}: {e}"
                    )

        return self._config_data

    def get_engine_config(self) -> EngineConfig:
        """Get position engine configuration.

        Extracts the engine section from the configuration and returns
        it as a typed EngineConfig object. Missing keys take the
        dataclass defaults.

        Returns
        -------
        EngineConfig
            The engine configuration with defaults applied

        Raises
        ------
        ValueError
            If a flag is not a boolean or a leveraged market is unknown

        Examples
        --------
        >>> loader = ConfigLoader()
        >>> loader.get_engine_config().simulate_borrowing
        True
        """
        data = self.load()
        engine_data = data.get("engine", {}) or {}
        defaults = EngineConfig()

        for flag in ("futures_fee_redirect", "simulate_borrowing"):
            if flag in engine_data and not isinstance(engine_data[flag], bool):
                raise ValueError(
                    f"Invalid {flag}: {engine_data[flag]!r}. Must be true or false."
                )

        leveraged_markets = engine_data.get(
            "leveraged_markets", defaults.leveraged_markets
        )
        valid_markets = {m.value for m in Market}
        unknown = [m for m in leveraged_markets if m not in valid_markets]
        if unknown:
            raise ValueError(
                f"Unknown leveraged markets {unknown}. "
                f"Valid markets are: {', '.join(sorted(valid_markets))}"
            )

        return EngineConfig(
            futures_fee_redirect=engine_data.get(
                "futures_fee_redirect", defaults.futures_fee_redirect
            ),
            simulate_borrowing=engine_data.get(
                "simulate_borrowing", defaults.simulate_borrowing
            ),
            manual_exchange=str(
                engine_data.get("manual_exchange", defaults.manual_exchange)
            ),
            leveraged_markets=list(leveraged_markets),
        )

    def get_fee_table(self) -> FeeTable:
        """Get the exchange fee table from configuration.

        Returns
        -------
        FeeTable
            Mapping exchange -> market -> FeeSchedule. The built-in table
            is returned when the configuration has no fees section.

        Raises
        ------
        ValueError
            If a market entry is incomplete or a rate is out of range

        Examples
        --------
        >>> loader = ConfigLoader()
        >>> loader.get_fee_table()["Binance"]["Futures"].taker
        0.0005
        """
        data = self.load()
        if not data.get("fees"):
            return get_default_fee_table()
        return load_fee_table_from_config(data)
