"""
Custom exceptions for the CLOB client.

Typed exceptions so callers can tell configuration, signing and
transport failures apart without parsing messages.
"""

from typing import Optional, Any


class PolyClobError(Exception):
    """Base exception for all polyclob errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# Signing / configuration
class SigningError(PolyClobError):
    """Private key material is malformed. Fatal, never retried."""
    pass


class ConfigError(PolyClobError):
    """Signer variant, funder or network configuration is inconsistent."""
    pass


class ValidationError(PolyClobError):
    """Input validation failed."""
    pass


# Authentication
class AuthenticationError(PolyClobError):
    """Exchange rejected the L1/L2 proof, or the credential response was unusable."""
    pass


class MissingCredentialsError(PolyClobError):
    """L2 operation attempted before API credentials were set."""
    pass


# Trading
class TradingError(PolyClobError):
    """Base exception for trading operations."""
    pass


class InvalidOrderError(TradingError):
    """Order parameters are invalid."""
    pass


class OrderRejectedError(TradingError):
    """Order was rejected by exchange."""

    def __init__(self, message: str, order_id: Optional[str] = None,
                 reason: Optional[str] = None):
        super().__init__(message, {"order_id": order_id, "reason": reason})
        self.order_id = order_id
        self.reason = reason


# Transport
class APIError(PolyClobError):
    """API request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response: Optional[Any] = None):
        super().__init__(message, {"status_code": status_code, "response": response})
        self.status_code = status_code
        self.response = response


class RateLimitError(APIError):
    """Rate limit exceeded."""

    def __init__(self, message: str, endpoint: str, retry_after: Optional[float] = None):
        super().__init__(message, status_code=429)
        self.details.update({"endpoint": endpoint, "retry_after": retry_after})
        self.endpoint = endpoint
        self.retry_after = retry_after


class TimeoutError(PolyClobError):
    """Request timed out."""
    pass


class CircuitBreakerError(PolyClobError):
    """Circuit breaker is open, requests blocked."""
    pass
