"""
Type definitions for the CLOB client.

Uses Pydantic for runtime validation and type safety.
DECIMAL PRECISION: prices and sizes use Decimal, on-chain amounts use int.
"""

from enum import Enum
from typing import Optional, Any
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict, field_validator

from .utils.validators import ZERO_ADDRESS


class Side(str, Enum):
    """Order side."""
    BUY = "BUY"
    SELL = "SELL"

    @property
    def as_uint8(self) -> int:
        """Value used in the signed order struct (BUY=0, SELL=1)."""
        return 0 if self is Side.BUY else 1


class OrderType(str, Enum):
    """Order type."""
    GTC = "GTC"  # Good-til-cancelled
    GTD = "GTD"  # Good-til-date
    FOK = "FOK"  # Fill-or-kill
    FAK = "FAK"  # Fill-and-kill


class SignatureType(int, Enum):
    """Wallet signature type, as the exchange contract numbers them."""
    EOA = 0               # Externally Owned Account (key signs for itself)
    POLY_PROXY = 1        # Polymarket proxy wallet (email/Magic login)
    POLY_GNOSIS_SAFE = 2  # Gnosis Safe (browser wallet login)


def _to_decimal(v: Any) -> Decimal:
    if isinstance(v, Decimal):
        return v
    elif isinstance(v, str):
        return Decimal(v)
    elif isinstance(v, (int, float)):
        return Decimal(str(v))  # Convert via string to avoid float precision loss
    else:
        raise ValueError(f"Cannot convert {type(v)} to Decimal")


# Credentials
class ApiCredentials(BaseModel):
    """
    L2 API credentials.

    SECURITY: secret and passphrase are hidden from repr so the triple can be
    logged by identifier only.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    api_key: str = Field(..., alias="apiKey")
    secret: str = Field(..., repr=False)
    passphrase: str = Field(..., repr=False)

    @field_validator("api_key", "secret", "passphrase")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("credential field must be non-empty")
        return v


# Order inputs
class OrderParams(BaseModel):
    """
    Amount-level order input.

    Amounts are integers in the token's smallest unit (6 decimals).
    Expiration 0 means the order never expires.
    """
    token_id: str
    maker_amount: int
    taker_amount: int
    side: Side
    expiration: int = 0
    nonce: int = 0
    fee_rate_bps: int = 0
    taker: str = ZERO_ADDRESS
    salt: Optional[int] = None
    signature_type: Optional[SignatureType] = None


class OrderArgs(BaseModel):
    """Price-level order input (limit order)."""
    token_id: str
    price: Decimal
    size: Decimal = Field(..., description="Number of outcome tokens")
    side: Side
    fee_rate_bps: int = 0
    nonce: int = 0
    expiration: int = 0
    taker: str = ZERO_ADDRESS

    @field_validator("price", "size", mode="before")
    @classmethod
    def validate_numeric(cls, v: Any) -> Decimal:
        """Convert numeric fields to Decimal."""
        return _to_decimal(v)


# Orders
class Order(BaseModel):
    """Canonical order record, exactly the fields that get signed."""
    model_config = ConfigDict(frozen=True)

    salt: int
    maker: str
    signer: str
    taker: str
    token_id: str
    maker_amount: int
    taker_amount: int
    expiration: int
    nonce: int
    fee_rate_bps: int
    side: Side
    signature_type: SignatureType

    def eip712_message(self) -> dict[str, Any]:
        """Order struct values in EIP-712 field order."""
        return {
            "salt": self.salt,
            "maker": self.maker,
            "signer": self.signer,
            "taker": self.taker,
            "tokenId": int(self.token_id),
            "makerAmount": self.maker_amount,
            "takerAmount": self.taker_amount,
            "expiration": self.expiration,
            "nonce": self.nonce,
            "feeRateBps": self.fee_rate_bps,
            "side": self.side.as_uint8,
            "signatureType": int(self.signature_type),
        }


class SignedOrder(BaseModel):
    """Order plus its 0x-prefixed signature."""
    model_config = ConfigDict(frozen=True)

    order: Order
    signature: str

    def to_payload(self) -> dict[str, Any]:
        """JSON shape the exchange expects under "order"."""
        order = self.order
        return {
            "salt": order.salt,
            "maker": order.maker,
            "signer": order.signer,
            "taker": order.taker,
            "tokenId": order.token_id,
            "makerAmount": str(order.maker_amount),
            "takerAmount": str(order.taker_amount),
            "expiration": str(order.expiration),
            "nonce": str(order.nonce),
            "feeRateBps": str(order.fee_rate_bps),
            "side": order.side.value,
            "signatureType": int(order.signature_type),
            "signature": self.signature,
        }


# Query filters
class TradeParams(BaseModel):
    """Filters for GET /data/trades."""
    id: Optional[str] = None
    maker_address: Optional[str] = None
    market: Optional[str] = None
    asset_id: Optional[str] = None
    before: Optional[int] = None
    after: Optional[int] = None

    def to_query(self) -> dict[str, Any]:
        """Non-empty filters as query params."""
        return {k: v for k, v in self.model_dump().items() if v is not None}


class OpenOrderParams(BaseModel):
    """Filters for GET /data/orders."""
    id: Optional[str] = None
    market: Optional[str] = None
    asset_id: Optional[str] = None

    def to_query(self) -> dict[str, Any]:
        """Non-empty filters as query params."""
        return {k: v for k, v in self.model_dump().items() if v is not None}


# Response Models
class OrderResponse(BaseModel):
    """Order placement response."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    order_id: Optional[str] = Field(None, alias="orderID")
    status: Optional[str] = None
    error_msg: Optional[str] = Field(None, alias="errorMsg")
    order_hashes: Optional[list[str]] = Field(None, alias="orderHashes")


class MakerOrder(BaseModel):
    """Maker side of a matched trade."""
    model_config = ConfigDict(extra="allow")

    order_id: str
    maker_address: Optional[str] = None
    owner: Optional[str] = None
    matched_amount: Optional[Decimal] = None
    price: Optional[Decimal] = None
    fee_rate_bps: Optional[Decimal] = None
    asset_id: Optional[str] = None
    outcome: Optional[str] = None
    side: Optional[Side] = None


class Trade(BaseModel):
    """Trade record from GET /data/trades."""
    model_config = ConfigDict(extra="allow")

    id: str
    taker_order_id: Optional[str] = None
    market: str
    asset_id: str
    side: Side
    size: Decimal
    fee_rate_bps: Optional[Decimal] = None
    price: Decimal
    status: Optional[str] = None
    match_time: Optional[int] = None
    last_update: Optional[int] = None
    outcome: Optional[str] = None
    maker_address: Optional[str] = None
    owner: Optional[str] = None
    transaction_hash: Optional[str] = None
    bucket_index: Optional[int] = None
    trader_side: Optional[str] = None
    maker_orders: list[MakerOrder] = Field(default_factory=list)

    @field_validator("size", "price", mode="before")
    @classmethod
    def validate_numeric(cls, v: Any) -> Decimal:
        """Convert numeric fields to Decimal."""
        return _to_decimal(v)


class OpenOrder(BaseModel):
    """Open order from GET /data/orders."""
    model_config = ConfigDict(extra="allow")

    id: str
    status: Optional[str] = None
    owner: Optional[str] = None
    maker_address: Optional[str] = None
    market: str
    asset_id: str
    side: Side
    original_size: Decimal
    size_matched: Decimal = Decimal("0")
    price: Decimal
    outcome: Optional[str] = None
    expiration: Optional[int] = None
    order_type: Optional[OrderType] = None
    created_at: Optional[int] = None
    associate_trades: list[str] = Field(default_factory=list)

    @field_validator("original_size", "size_matched", "price", mode="before")
    @classmethod
    def validate_numeric(cls, v: Any) -> Decimal:
        """Convert numeric fields to Decimal."""
        return _to_decimal(v)
