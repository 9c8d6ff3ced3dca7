"""REST API module for the trade ledger."""

from .main import app

__all__ = ["app"]
