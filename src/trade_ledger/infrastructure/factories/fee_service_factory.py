"""Factory for creating configured fee service instances.

This module provides factory methods to create TradingFeeService
instances with the exchange fee table and engine flags loaded from
configuration.
"""

import logging
from typing import Optional

from ...domain.positions import TradingFeeService
from ...domain.positions.fee_config import FeeTable, get_default_fee_table
from ..config.loader import ConfigLoader
from ..config.models import EngineConfig

logger = logging.getLogger(__name__)


class FeeServiceFactory:
    """Factory for creating configured fee service instances.

    This class provides static methods to create TradingFeeService
    instances based on configuration.
    """

    @staticmethod
    def create_from_config(config_loader: ConfigLoader) -> TradingFeeService:
        """Create fee service with the fee table loaded from configuration.

        Parameters
        ----------
        config_loader : ConfigLoader
            Configuration loader instance with access to config data

        Returns
        -------
        TradingFeeService
            Configured fee service instance

        Raises
        ------
        ValueError
            If the fee table or engine section is invalid

        Notes
        -----
        The fee service is always a new instance - this factory does
        not cache or reuse service instances.

        Examples
        --------
        >>> config_loader = ConfigLoader()
        >>> fee_service = FeeServiceFactory.create_from_config(config_loader)
        >>> fee_service.resolve_fee("Binance", "Spot", "Market").rate
        0.001
        """
        return FeeServiceFactory.create(
            config_loader.get_engine_config(), config_loader.get_fee_table()
        )

    @staticmethod
    def create(
        engine_config: EngineConfig, fee_table: Optional[FeeTable] = None
    ) -> TradingFeeService:
        """Create fee service from engine flags and a fee table.

        The built-in table is used when ``fee_table`` is None.
        """
        if fee_table is None:
            fee_table = get_default_fee_table()

        listed = sorted(name for name, markets in fee_table.items() if markets)
        logger.info(
            f"Loaded fee schedules for {len(listed)} exchanges: {', '.join(listed)}"
        )

        return TradingFeeService(
            fee_table,
            futures_fee_redirect=engine_config.futures_fee_redirect,
            manual_exchange=engine_config.manual_exchange,
            leveraged_markets=engine_config.leveraged_markets,
        )
