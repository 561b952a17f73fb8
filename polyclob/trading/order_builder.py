"""
Order builder with EIP-712 signing.

Builds the canonical order record for the CTF exchange, hashes it with the
two-stage EIP-712 construction and signs the digest with the wallet key.
No network calls happen here.
"""

import hashlib
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from eth_account.messages import encode_typed_data
from eth_utils import keccak

from .amounts import order_amounts
from .signer_variant import DomainParameters, SignerVariant
from ..auth.key_material import KeyMaterial, recover_address, signature_to_hex
from ..contracts import ContractConfig
from ..models import Order, OrderArgs, OrderParams, SignedOrder
from ..exceptions import InvalidOrderError, ValidationError
from ..utils.validators import UINT256_MAX, validate_address, validate_token_id

logger = logging.getLogger(__name__)


# Salts stay below 2**53 so they survive JSON number parsing on any client
SALT_BITS = 53

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

ORDER_TYPE = [
    {"name": "salt", "type": "uint256"},
    {"name": "maker", "type": "address"},
    {"name": "signer", "type": "address"},
    {"name": "taker", "type": "address"},
    {"name": "tokenId", "type": "uint256"},
    {"name": "makerAmount", "type": "uint256"},
    {"name": "takerAmount", "type": "uint256"},
    {"name": "expiration", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
    {"name": "feeRateBps", "type": "uint256"},
    {"name": "side", "type": "uint8"},
    {"name": "signatureType", "type": "uint8"},
]


@dataclass(frozen=True)
class OrderSignature:
    """Signature over an order digest, plus what it was computed from."""
    signature: bytes
    digest: bytes
    domain: DomainParameters

    def hex(self) -> str:
        return signature_to_hex(self.signature)

    def recover(self) -> str:
        """Address that produced the signature."""
        return recover_address(self.digest, self.signature)


def generate_salt() -> int:
    """Random order salt. `secrets` is safe to call from several threads."""
    return secrets.randbits(SALT_BITS)


def salt_from_key(idempotency_key: Optional[str]) -> int:
    """
    Deterministic salt from an idempotency key.

    The same key always yields the same salt, so a retried submission
    produces the same order hash. None falls back to a random salt.

    Example:
        >>> salt_from_key("550e8400-e29b-41d4-a716-446655440000") == \\
        ...     salt_from_key("550e8400-e29b-41d4-a716-446655440000")
        True
    """
    if idempotency_key is None:
        return generate_salt()

    hash_bytes = hashlib.sha256(idempotency_key.encode("utf-8")).digest()
    return int.from_bytes(hash_bytes, byteorder="big") >> (256 - SALT_BITS)


def order_typed_data(order: Order, domain: DomainParameters) -> dict:
    """Full EIP-712 typed-data document for an order."""
    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_TYPE,
            "Order": ORDER_TYPE,
        },
        "primaryType": "Order",
        "domain": domain.as_eip712_domain(),
        "message": order.eip712_message(),
    }


def order_digest(order: Order, domain: DomainParameters) -> bytes:
    """
    keccak256(0x19 0x01 || domainSeparator || hashStruct(order)).

    encode_typed_data returns the two stages separately (header is the
    domain separator, body the struct hash).
    """
    signable = encode_typed_data(full_message=order_typed_data(order, domain))
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def _validate_params(params: OrderParams, variant: SignerVariant, reference_time: int) -> str:
    if params.maker_amount <= 0:
        raise InvalidOrderError(
            f"maker_amount must be positive, got {params.maker_amount}"
        )
    if params.taker_amount <= 0:
        raise InvalidOrderError(
            f"taker_amount must be positive, got {params.taker_amount}"
        )
    if params.fee_rate_bps < 0:
        raise InvalidOrderError(f"fee_rate_bps must be >= 0, got {params.fee_rate_bps}")
    if params.nonce < 0:
        raise InvalidOrderError(f"nonce must be >= 0, got {params.nonce}")
    if params.salt is not None and params.salt < 0:
        raise InvalidOrderError(f"salt must be >= 0, got {params.salt}")
    for field in ("maker_amount", "taker_amount", "expiration", "nonce", "fee_rate_bps", "salt"):
        value = getattr(params, field)
        if value is not None and value > UINT256_MAX:
            raise InvalidOrderError(f"{field} exceeds uint256 range", {"field": field})

    # 0 means no expiration
    if params.expiration < 0 or (params.expiration and params.expiration <= reference_time):
        raise InvalidOrderError(
            f"Expiration {params.expiration} is in the past (reference: {reference_time})",
            {"expiration": params.expiration, "reference_time": reference_time}
        )

    if params.signature_type is not None and params.signature_type != variant.signature_type:
        raise InvalidOrderError(
            f"Signature type {params.signature_type.name} does not match "
            f"signer variant {type(variant).__name__} ({variant.signature_type.name})"
        )

    try:
        return validate_token_id(params.token_id)
    except ValidationError as e:
        raise InvalidOrderError(e.message) from e


def build_order(
    params: OrderParams,
    signer_variant: SignerVariant,
    key_material: KeyMaterial,
    *,
    chain_id: int,
    funder: Optional[str] = None,
    neg_risk: bool = False,
    reference_time: Optional[int] = None,
    contracts: Optional[ContractConfig] = None
) -> Tuple[Order, OrderSignature]:
    """
    Build and sign an order.

    Args:
        params: Amount-level order parameters
        signer_variant: Active wallet topology
        key_material: Signing key
        chain_id: Network identifier
        funder: Funder address for proxy/safe variants
        neg_risk: Sign for the neg-risk exchange
        reference_time: Unix seconds expiration is checked against (now if None)
        contracts: Contract addresses (looked up by chain if None)

    Returns:
        (order, signature)

    Raises:
        InvalidOrderError: If parameters are invalid
        ConfigError: If the variant needs a funder that is not configured
    """
    if reference_time is None:
        reference_time = int(time.time())

    token_id = _validate_params(params, signer_variant, reference_time)

    try:
        taker = validate_address(params.taker)
    except ValidationError as e:
        raise InvalidOrderError(f"Invalid taker: {e.message}") from e

    signer = key_material.address
    maker = signer_variant.resolve_maker_address(signer, funder)
    domain = signer_variant.domain_parameters(chain_id, neg_risk=neg_risk, contracts=contracts)

    order = Order(
        salt=params.salt if params.salt is not None else generate_salt(),
        maker=maker,
        signer=signer,
        taker=taker,
        token_id=token_id,
        maker_amount=params.maker_amount,
        taker_amount=params.taker_amount,
        expiration=params.expiration,
        nonce=params.nonce,
        fee_rate_bps=params.fee_rate_bps,
        side=params.side,
        signature_type=signer_variant.signature_type,
    )

    digest = order_digest(order, domain)
    signature = OrderSignature(
        signature=key_material.sign_digest(digest),
        digest=digest,
        domain=domain,
    )

    logger.debug(
        f"Signed order: {order.side.value} maker={order.maker_amount} "
        f"taker={order.taker_amount} token={order.token_id} "
        f"type={order.signature_type.name}"
    )
    return order, signature


class OrderBuilder:
    """
    Builds and signs orders for one key and signer variant.

    Holds the per-client configuration so callers only pass order fields.
    """

    def __init__(
        self,
        key_material: KeyMaterial,
        signer_variant: SignerVariant,
        chain_id: int,
        funder: Optional[str] = None,
        contracts: Optional[ContractConfig] = None,
        clock: Optional[Callable[[], int]] = None
    ):
        """
        Initialize order builder.

        Args:
            key_material: Signing key
            signer_variant: Wallet topology
            chain_id: Network identifier
            funder: Funder address for proxy/safe variants
            contracts: Contract addresses (looked up by chain if None)
            clock: Unix-seconds clock for expiration checks
        """
        self.key_material = key_material
        self.signer_variant = signer_variant
        self.chain_id = chain_id
        self.funder = funder
        self.contracts = contracts
        self.clock = clock or (lambda: int(time.time()))

    def build_order(
        self,
        params: OrderParams,
        neg_risk: bool = False,
        reference_time: Optional[int] = None
    ) -> Tuple[Order, OrderSignature]:
        """Build and sign an order from amount-level parameters."""
        return build_order(
            params,
            self.signer_variant,
            self.key_material,
            chain_id=self.chain_id,
            funder=self.funder,
            neg_risk=neg_risk,
            reference_time=reference_time if reference_time is not None else self.clock(),
            contracts=self.contracts,
        )

    def create_order(
        self,
        args: OrderArgs,
        tick_size: str = "0.01",
        neg_risk: bool = False,
        idempotency_key: Optional[str] = None
    ) -> SignedOrder:
        """
        Build and sign a limit order from price and size.

        Args:
            args: Price-level order arguments
            tick_size: Market tick size
            neg_risk: Market uses the neg-risk exchange
            idempotency_key: Optional key for a deterministic salt

        Returns:
            Signed order ready for submission
        """
        side, maker_amount, taker_amount = order_amounts(
            args.side, args.size, args.price, tick_size
        )

        params = OrderParams(
            token_id=args.token_id,
            maker_amount=maker_amount,
            taker_amount=taker_amount,
            side=side,
            expiration=args.expiration,
            nonce=args.nonce,
            fee_rate_bps=args.fee_rate_bps,
            taker=args.taker,
            salt=salt_from_key(idempotency_key),
        )
        order, signature = self.build_order(params, neg_risk=neg_risk)

        logger.info(
            f"Built order: {args.side.value} {args.size} @ {args.price} "
            f"(token={args.token_id}, neg_risk={neg_risk})"
        )
        return SignedOrder(order=order, signature=signature.hex())
