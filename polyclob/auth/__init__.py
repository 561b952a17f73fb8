"""Authentication modules for the CLOB client."""

from .key_material import KeyMaterial, recover_address
from .credentials import CredentialStore
from .authenticator import (
    L1Authenticator,
    L2Authenticator,
    L1Headers,
    L2Headers,
    build_l1_headers,
    build_l2_headers,
    verify_l2_signature,
)

__all__ = [
    "KeyMaterial",
    "recover_address",
    "CredentialStore",
    "L1Authenticator",
    "L2Authenticator",
    "L1Headers",
    "L2Headers",
    "build_l1_headers",
    "build_l2_headers",
    "verify_l2_signature",
]
