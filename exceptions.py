"""
Custom exceptions for the Cube League Draft Bot

Raised inside the store and service layers. Public draft operations catch
these at their boundary and return an ActionResult instead of raising.
"""
from typing import Optional


class BotException(Exception):
    """Base exception for all bot-related errors."""
    pass


class APIException(BotException):
    """Exception for store (REST API) errors."""

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.code = code


class ConflictException(APIException):
    """Raised when the store rejects a write because of a unique constraint."""
    pass

