"""API endpoint modules."""

from . import account, calculator, ledger, positions

__all__ = ["account", "calculator", "ledger", "positions"]
