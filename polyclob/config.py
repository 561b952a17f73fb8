"""
Configuration management for the CLOB client.

Loads settings from environment variables with validation.
"""

from typing import Optional
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


# Polygon mainnet and Amoy testnet
POLYGON = 137
AMOY = 80002

DEFAULT_CLOB_URL = "https://clob.polymarket.com"


class ClobSettings(BaseSettings):
    """
    CLOB client settings.

    Loads from environment variables with POLYCLOB_ prefix. The private key
    and funder are only ever read from the environment; nothing here writes
    them back out.
    """
    model_config = SettingsConfigDict(
        env_prefix="POLYCLOB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # API
    clob_url: str = Field(default=DEFAULT_CLOB_URL, description="CLOB API URL")

    # Chain configuration
    chain_id: int = Field(default=POLYGON, description="Polygon chain ID")
    exchange_address: Optional[str] = Field(
        None, description="Override for the CTF exchange (EIP-712 verifying contract)"
    )
    neg_risk_exchange_address: Optional[str] = Field(
        None, description="Override for the neg-risk CTF exchange"
    )

    # Wallet (environment-supplied secrets)
    private_key: Optional[SecretStr] = Field(None, description="Signing key (hex)")
    funder: Optional[str] = Field(None, description="Proxy/Safe address that funds orders")
    signature_type: int = Field(default=0, ge=0, le=2, description="0=EOA, 1=proxy, 2=safe")

    # Auth
    use_server_time: bool = Field(
        default=False, description="Take auth timestamps from GET /time instead of the local clock"
    )

    # Timeouts and retries
    request_timeout: float = Field(default=30.0, ge=1.0, description="Request timeout (seconds)")
    connect_timeout: float = Field(default=10.0, ge=1.0, description="Connection timeout (seconds)")
    max_retries: int = Field(default=3, ge=0, le=10, description="Max retry attempts")
    retry_backoff_base: float = Field(default=2.0, ge=1.0, description="Backoff multiplier")
    retry_backoff_max: float = Field(default=60.0, ge=1.0, description="Max backoff delay")

    # Circuit breaker
    enable_circuit_breaker: bool = Field(default=True, description="Enable circuit breaker")
    circuit_breaker_threshold: int = Field(default=5, ge=1, description="Failures before opening")
    circuit_breaker_timeout: float = Field(default=60.0, ge=1.0, description="Reset timeout")

    # Connection pooling
    pool_connections: int = Field(default=10, ge=1, le=200, description="HTTP connection pool size")
    pool_maxsize: int = Field(default=20, ge=1, le=500, description="Max connections per pool")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_requests: bool = Field(default=False, description="Log all HTTP requests")

    def __repr__(self) -> str:
        """Safe repr without sensitive data."""
        return (
            f"ClobSettings("
            f"clob_url={self.clob_url}, "
            f"chain_id={self.chain_id}, "
            f"signature_type={self.signature_type}"
            ")"
        )


def get_settings() -> ClobSettings:
    """
    Load settings from the environment.

    Returns:
        Validated settings instance
    """
    return ClobSettings()
