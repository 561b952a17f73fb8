"""
Price/size to on-chain amount conversion.

Outcome tokens and USDC both use 6 decimals. Rounding depends on the
market tick size; all arithmetic is Decimal.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP, ROUND_UP
from typing import Any, Dict, Tuple

from ..models import Side
from ..exceptions import InvalidOrderError


TOKEN_DECIMALS = 6


@dataclass(frozen=True)
class RoundConfig:
    """Decimal places kept for price, size and the derived amount."""
    price: int
    size: int
    amount: int


ROUNDING_CONFIG: Dict[str, RoundConfig] = {
    "0.1": RoundConfig(price=1, size=2, amount=3),
    "0.01": RoundConfig(price=2, size=2, amount=4),
    "0.001": RoundConfig(price=3, size=2, amount=5),
    "0.0001": RoundConfig(price=4, size=2, amount=6),
}


def _dec(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _quantum(digits: int) -> Decimal:
    return Decimal(1).scaleb(-digits)


def round_down(x: Decimal, digits: int) -> Decimal:
    return x.quantize(_quantum(digits), rounding=ROUND_DOWN)


def round_up(x: Decimal, digits: int) -> Decimal:
    return x.quantize(_quantum(digits), rounding=ROUND_UP)


def round_normal(x: Decimal, digits: int) -> Decimal:
    return x.quantize(_quantum(digits), rounding=ROUND_HALF_UP)


def decimal_places(x: Decimal) -> int:
    exponent = x.normalize().as_tuple().exponent
    return max(0, -exponent) if isinstance(exponent, int) else 0


def to_token_decimals(x: Decimal) -> int:
    """Scale a human amount to the 6-decimal integer representation."""
    return int(round_normal(x * (10 ** TOKEN_DECIMALS), 0))


def _fit_amount(raw: Decimal, digits: int) -> Decimal:
    if decimal_places(raw) > digits:
        raw = round_up(raw, digits + 4)
        if decimal_places(raw) > digits:
            raw = round_down(raw, digits)
    return raw


def round_config_for(tick_size: Any) -> RoundConfig:
    """
    Rounding rules for a tick size.

    Raises:
        InvalidOrderError: If the tick size is not supported
    """
    key = str(_dec(tick_size).normalize())
    try:
        return ROUNDING_CONFIG[key]
    except KeyError:
        raise InvalidOrderError(
            f"Unsupported tick size {tick_size}",
            {"allowed": list(ROUNDING_CONFIG)}
        ) from None


def price_valid(price: Decimal, tick_size: Decimal) -> bool:
    """Price must lie within [tick, 1 - tick]."""
    return tick_size <= price <= Decimal("1") - tick_size


def order_amounts(
    side: Side,
    size: Any,
    price: Any,
    tick_size: Any = "0.01"
) -> Tuple[Side, int, int]:
    """
    Compute maker and taker amounts for a limit order.

    BUY pays size*price collateral for `size` tokens; SELL gives `size`
    tokens for size*price collateral.

    Args:
        side: Order side
        size: Number of outcome tokens
        price: Price per token
        tick_size: Market tick size

    Returns:
        (side, maker_amount, taker_amount)

    Raises:
        InvalidOrderError: If price is outside the tick range or size rounds to zero
    """
    config = round_config_for(tick_size)
    tick = _dec(tick_size)
    price = _dec(price)
    size = _dec(size)

    if not price_valid(price, tick):
        raise InvalidOrderError(
            f"Price {price} invalid for tick size {tick}. "
            f"Must be between {tick} and {1 - tick}"
        )

    raw_price = round_normal(price, config.price)
    raw_size = round_down(size, config.size)
    if raw_size <= 0:
        raise InvalidOrderError(f"Size {size} rounds to zero")

    raw_other = _fit_amount(raw_size * raw_price, config.amount)

    if side == Side.BUY:
        # maker gives collateral, taker gives tokens
        return side, to_token_decimals(raw_other), to_token_decimals(raw_size)
    return side, to_token_decimals(raw_size), to_token_decimals(raw_other)
