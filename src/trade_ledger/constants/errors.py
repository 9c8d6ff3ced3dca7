"""Error codes and messages used in the trade ledger."""


class ErrorCodes:
    """Error codes for API responses."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_PAIR = "INVALID_PAIR"
    INVALID_PRICE = "INVALID_PRICE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_TOTAL = "INVALID_TOTAL"
    INVALID_PRINCIPAL = "INVALID_PRINCIPAL"
    INVALID_LEVERAGE = "INVALID_LEVERAGE"
    LEVERAGE_NOT_SUPPORTED = "LEVERAGE_NOT_SUPPORTED"
    POSITION_NOT_FOUND = "POSITION_NOT_FOUND"
    TRADE_NOT_FOUND = "TRADE_NOT_FOUND"
    ALREADY_IN_LEDGER = "ALREADY_IN_LEDGER"
    POSITION_NOT_CLOSED = "POSITION_NOT_CLOSED"
    POSITION_KEY_MISMATCH = "POSITION_KEY_MISMATCH"


class ErrorMessages:
    """Error messages for user responses."""

    POSITION_NOT_FOUND = "Position not found"
    TRADE_NOT_FOUND = "Trade not found"
    ALREADY_IN_LEDGER = "Position is already saved to the ledger"
    POSITION_NOT_CLOSED = "Only closed positions can be saved to the ledger"
    POSITION_KEY_MISMATCH = (
        "Trade pair, exchange or market does not match the target position"
    )

    @staticmethod
    def format_invalid_field(field: str, value) -> str:
        """Format a rejected numeric field message."""
        return f"Invalid {field}: {value}"
