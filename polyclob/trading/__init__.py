"""Order construction and signing."""

from .signer_variant import (
    SignerVariant,
    EOA,
    ProxyWallet,
    GnosisSafeWallet,
    DomainParameters,
    signer_variant_for,
)
from .order_builder import OrderBuilder, OrderSignature, build_order, order_digest
from .amounts import order_amounts

__all__ = [
    "SignerVariant",
    "EOA",
    "ProxyWallet",
    "GnosisSafeWallet",
    "DomainParameters",
    "signer_variant_for",
    "OrderBuilder",
    "OrderSignature",
    "build_order",
    "order_digest",
    "order_amounts",
]
