"""Utility modules for the CLOB client."""

from .validators import validate_address, validate_private_key, validate_token_id, ZERO_ADDRESS
from .retry import RetryStrategy, CircuitBreaker
from .pagination import CursorPaginator, INITIAL_CURSOR, END_CURSOR

__all__ = [
    "validate_address",
    "validate_private_key",
    "validate_token_id",
    "ZERO_ADDRESS",
    "RetryStrategy",
    "CircuitBreaker",
    "CursorPaginator",
    "INITIAL_CURSOR",
    "END_CURSOR",
]
