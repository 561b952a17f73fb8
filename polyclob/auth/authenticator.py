"""
Authentication handlers for the CLOB.

L1: EIP-712 wallet signature over a login challenge, used to create or
    derive API credentials.
L2: HMAC-SHA256 over each request using the API secret.

Both take the timestamp from the caller so that the clock source (local or
exchange) stays outside the signing code.
"""

import base64
import binascii
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional, Union

from eth_utils import keccak

from .credentials import CredentialStore
from .eip712_models import ClobAuth, CLOB_AUTH_MESSAGE, clob_auth_domain
from .key_material import KeyMaterial, signature_to_hex
from ..models import ApiCredentials
from ..exceptions import AuthenticationError, MissingCredentialsError

logger = logging.getLogger(__name__)


# Wire header names
POLY_ADDRESS = "POLY_ADDRESS"
POLY_SIGNATURE = "POLY_SIGNATURE"
POLY_TIMESTAMP = "POLY_TIMESTAMP"
POLY_NONCE = "POLY_NONCE"
POLY_API_KEY = "POLY_API_KEY"
POLY_PASSPHRASE = "POLY_PASSPHRASE"


@dataclass(frozen=True)
class L1Headers:
    """Headers proving wallet control."""
    address: str
    signature: str
    timestamp: int
    nonce: int

    def as_dict(self) -> dict[str, str]:
        return {
            POLY_ADDRESS: self.address,
            POLY_SIGNATURE: self.signature,
            POLY_TIMESTAMP: str(self.timestamp),
            POLY_NONCE: str(self.nonce),
        }


@dataclass(frozen=True)
class L2Headers:
    """Headers authorizing one request with API credentials."""
    address: str
    api_key: str
    signature: str
    timestamp: int
    passphrase: str

    def as_dict(self) -> dict[str, str]:
        return {
            POLY_ADDRESS: self.address,
            POLY_SIGNATURE: self.signature,
            POLY_TIMESTAMP: str(self.timestamp),
            POLY_API_KEY: self.api_key,
            POLY_PASSPHRASE: self.passphrase,
        }

    def __repr__(self) -> str:
        # SECURITY: passphrase stays out of logs
        return (
            f"L2Headers(address={self.address}, api_key={self.api_key}, "
            f"timestamp={self.timestamp})"
        )


AuthHeaders = Union[L1Headers, L2Headers]


def l1_digest(address: str, chain_id: int, timestamp: int, nonce: int = 0) -> bytes:
    """
    EIP-712 digest of the ClobAuth login message.

    Args:
        address: Signing address
        chain_id: Network identifier
        timestamp: Unix seconds
        nonce: Login nonce

    Returns:
        32-byte digest
    """
    msg = ClobAuth(
        address=address,
        timestamp=str(timestamp),
        nonce=nonce,
        message=CLOB_AUTH_MESSAGE
    )
    return keccak(msg.signable_bytes(clob_auth_domain(chain_id)))


def build_l1_headers(
    key_material: KeyMaterial,
    chain_id: int,
    timestamp: int,
    nonce: Optional[int] = None
) -> L1Headers:
    """
    Create L1 authentication headers.

    Args:
        key_material: Wallet key
        chain_id: Network identifier
        timestamp: Unix seconds at call time
        nonce: Login nonce (None means 0)

    Returns:
        L1 headers
    """
    if nonce is None:
        nonce = 0

    address = key_material.address
    digest = l1_digest(address, chain_id, timestamp, nonce)
    signature = key_material.sign_digest(digest)

    logger.debug(f"Created L1 headers for {address} (nonce={nonce})")
    return L1Headers(
        address=address,
        signature=signature_to_hex(signature),
        timestamp=timestamp,
        nonce=nonce
    )


def _to_bytes(body: Union[bytes, str, None]) -> bytes:
    if body is None:
        return b""
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body)


def _decode_secret(secret: str) -> bytes:
    try:
        return base64.urlsafe_b64decode(secret)
    except (binascii.Error, ValueError) as e:
        # SECURITY: never echo the secret
        raise AuthenticationError(
            f"L2 signature failed: {type(e).__name__}. Check API secret format."
        ) from None


def l2_signature(
    secret: str,
    timestamp: int,
    method: str,
    path: str,
    body: Union[bytes, str, None] = b""
) -> str:
    """
    HMAC-SHA256 request signature.

    message = str(timestamp) + METHOD + path + body, keyed with the
    urlsafe-base64-decoded secret; result is urlsafe base64.

    Raises:
        AuthenticationError: If the secret is not valid base64
    """
    key = _decode_secret(secret)
    message = (str(timestamp) + method.upper() + path).encode("utf-8") + _to_bytes(body)
    digest = hmac.new(key, message, hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8")


def build_l2_headers(
    address: str,
    credentials: Optional[ApiCredentials],
    method: str,
    path: str,
    body: Union[bytes, str, None] = b"",
    *,
    timestamp: int
) -> L2Headers:
    """
    Create L2 authentication headers.

    `body` must be the exact bytes that go on the wire; serialize first,
    then sign, then send those same bytes.

    Args:
        address: Signing address
        credentials: API credentials
        method: HTTP method
        path: Request path without query string
        body: Serialized request body
        timestamp: Unix seconds at call time

    Returns:
        L2 headers

    Raises:
        MissingCredentialsError: If credentials is None
        AuthenticationError: If the secret is malformed
    """
    if credentials is None:
        raise MissingCredentialsError("L2 headers requested without API credentials")

    signature = l2_signature(credentials.secret, timestamp, method, path, body)

    logger.debug(f"Created L2 headers for {method.upper()} {path}")
    return L2Headers(
        address=address,
        api_key=credentials.api_key,
        signature=signature,
        timestamp=timestamp,
        passphrase=credentials.passphrase
    )


def verify_l2_signature(
    secret: str,
    signature: str,
    timestamp: int,
    method: str,
    path: str,
    body: Union[bytes, str, None] = b""
) -> bool:
    """
    Verify an L2 HMAC signature in constant time.

    Returns:
        True if signature is valid
    """
    expected = l2_signature(secret, timestamp, method, path, body)
    return hmac.compare_digest(signature, expected)


class L1Authenticator:
    """Builds L1 headers for one key on one chain."""

    def __init__(self, key_material: KeyMaterial, chain_id: int):
        self.key_material = key_material
        self.chain_id = chain_id

    def build_headers(self, timestamp: int, nonce: Optional[int] = None) -> L1Headers:
        return build_l1_headers(self.key_material, self.chain_id, timestamp, nonce)


class L2Authenticator:
    """Builds L2 headers from the credentials held in a CredentialStore."""

    def __init__(self, address: str, store: CredentialStore):
        self.address = address
        self.store = store

    def build_headers(
        self,
        method: str,
        path: str,
        body: Union[bytes, str, None] = b"",
        *,
        timestamp: int
    ) -> L2Headers:
        """
        Raises:
            MissingCredentialsError: If the store is empty
        """
        return build_l2_headers(
            self.address,
            self.store.require(),
            method,
            path,
            body,
            timestamp=timestamp
        )
