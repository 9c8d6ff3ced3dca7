"""Trade submission validation."""

from .trade_validator import TradeSubmissionValidator, ValidationResult

__all__ = ["TradeSubmissionValidator", "ValidationResult"]
