"""Constants module for the trade ledger.

This module contains shared error codes and messages to prevent string
duplication and ensure consistency across the codebase.
"""

from .errors import ErrorCodes, ErrorMessages

__all__ = ["ErrorCodes", "ErrorMessages"]
