"""Domain errors raised by the store, the feed and the trading engine.

Every ``TradingError`` is an expected failure and maps to a 400 response
carrying its message. ``UnhandledStorageError`` and anything else map to 500.
"""
from __future__ import annotations

class TradingError(Exception):
    status_code = 400
    message = "Bad request"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)

class DuplicateUser(TradingError):
    message = "User already exists"

class UserNotFound(TradingError):
    message = "User not found"

class InvalidCredentials(TradingError):
    message = "Invalid credentials"

class InsufficientUnits(TradingError):
    message = "Not enough units to sell"

class InsufficientFunds(TradingError):
    message = "Insufficient funds"

class UnknownTicker(TradingError):
    def __init__(self, ticker: str):
        super().__init__(f"Unknown ticker: {ticker}")
        self.ticker = ticker

class UnhandledStorageError(Exception):
    status_code = 500
