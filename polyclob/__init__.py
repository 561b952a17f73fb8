"""
polyclob

Client-side authentication and order signing for the Polymarket CLOB.

Adapted from Polymarket's official clients (MIT License):
- https://github.com/Polymarket/py-clob-client
- https://github.com/Polymarket/clob-client
"""

from .client import ClobClient
from .config import ClobSettings, POLYGON, AMOY
from .models import (
    Side,
    OrderType,
    SignatureType,
    ApiCredentials,
    OrderParams,
    OrderArgs,
    Order,
    SignedOrder,
    OrderResponse,
    Trade,
    TradeParams,
    OpenOrder,
    OpenOrderParams,
)
from .auth import KeyMaterial, CredentialStore, L1Authenticator, L2Authenticator
from .trading import (
    SignerVariant,
    EOA,
    ProxyWallet,
    GnosisSafeWallet,
    OrderBuilder,
    build_order,
)
from .exceptions import (
    PolyClobError,
    SigningError,
    ConfigError,
    ValidationError,
    AuthenticationError,
    MissingCredentialsError,
    TradingError,
    InvalidOrderError,
    OrderRejectedError,
    APIError,
    RateLimitError,
    TimeoutError,
    CircuitBreakerError,
)
from .logging_config import setup_logging

__version__ = "0.1.0"

__all__ = [
    # Main client
    "ClobClient",
    "ClobSettings",
    "POLYGON",
    "AMOY",

    # Types
    "Side",
    "OrderType",
    "SignatureType",
    "ApiCredentials",
    "OrderParams",
    "OrderArgs",
    "Order",
    "SignedOrder",
    "OrderResponse",
    "Trade",
    "TradeParams",
    "OpenOrder",
    "OpenOrderParams",

    # Auth and signing
    "KeyMaterial",
    "CredentialStore",
    "L1Authenticator",
    "L2Authenticator",
    "SignerVariant",
    "EOA",
    "ProxyWallet",
    "GnosisSafeWallet",
    "OrderBuilder",
    "build_order",

    # Exceptions
    "PolyClobError",
    "SigningError",
    "ConfigError",
    "ValidationError",
    "AuthenticationError",
    "MissingCredentialsError",
    "TradingError",
    "InvalidOrderError",
    "OrderRejectedError",
    "APIError",
    "RateLimitError",
    "TimeoutError",
    "CircuitBreakerError",

    "setup_logging",
]
