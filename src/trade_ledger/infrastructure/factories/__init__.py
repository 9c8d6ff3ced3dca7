"""Factories that build configured domain services."""

from .fee_service_factory import FeeServiceFactory
from .position_service_factory import PositionServiceFactory

__all__ = ["FeeServiceFactory", "PositionServiceFactory"]
