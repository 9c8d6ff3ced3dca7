"""Tests for position service factory functionality."""

from trade_ledger.domain.positions import PositionManagementService
from trade_ledger.domain.validation import TradeSubmissionValidator
from trade_ledger.infrastructure.config.models import EngineConfig
from trade_ledger.infrastructure.factories import PositionServiceFactory


class TestPositionServiceFactory:
    """Test creating the position service and validator from engine flags."""

    def test_create_service(self):
        """Test the service carries the engine flags.

        Given - Engine config with borrowing disabled and one margin market
        When - The factory creates the service
        Then - Flags and leveraged markets are applied, state is empty
        """
        engine_config = EngineConfig(
            simulate_borrowing=False, leveraged_markets=["Cross Margin"]
        )

        service = PositionServiceFactory.create(engine_config)

        assert isinstance(service, PositionManagementService)
        assert service.simulate_borrowing is False
        assert service.is_leveraged("Cross Margin")
        assert not service.is_leveraged("Isolated Margin")
        assert service.list_positions() == []
        assert service.get_ledger() == []

    def test_create_validator(self):
        """Test the validator uses the same leveraged markets."""
        engine_config = EngineConfig(leveraged_markets=["Isolated Margin"])

        validator = PositionServiceFactory.create_validator(engine_config)

        assert isinstance(validator, TradeSubmissionValidator)
        assert validator.leveraged_markets == ("Isolated Margin",)
