"""Factory for creating configured position services and validators."""

import logging

from ...domain.positions import PositionManagementService
from ...domain.validation import TradeSubmissionValidator
from ..config.models import EngineConfig

logger = logging.getLogger(__name__)


class PositionServiceFactory:
    """Factory for the position service and its submission validator.

    Both read the same engine flags so the validator and the aggregator
    agree on which markets accept leverage.
    """

    @staticmethod
    def create(engine_config: EngineConfig) -> PositionManagementService:
        """Create an empty position service with the configured flags.

        Parameters
        ----------
        engine_config : EngineConfig
            Engine flags from configuration

        Returns
        -------
        PositionManagementService
            New service instance with no positions and an empty ledger
        """
        if not engine_config.simulate_borrowing:
            logger.info("Margin borrowing simulation disabled")
        return PositionManagementService(
            simulate_borrowing=engine_config.simulate_borrowing,
            leveraged_markets=engine_config.leveraged_markets,
        )

    @staticmethod
    def create_validator(engine_config: EngineConfig) -> TradeSubmissionValidator:
        """Create a submission validator for the configured leveraged markets."""
        return TradeSubmissionValidator(
            leveraged_markets=engine_config.leveraged_markets
        )
