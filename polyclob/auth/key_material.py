"""
Private key wrapper for signing digests.

Holds the signing key for one wallet and derives its address. The key is
never part of repr() or any error message.
"""

import logging

from eth_account import Account
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as EthKeysValidationError

from ..exceptions import SigningError, ValidationError
from ..utils.validators import validate_private_key

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 65
DIGEST_LENGTH = 32


class KeyMaterial:
    """
    Signing key plus derived address.

    Signatures are 65 bytes (r || s || v, v in {27, 28}). ECDSA nonces are
    RFC 6979 deterministic, so the same digest always signs to the same bytes.
    """

    def __init__(self, private_key: str):
        """
        Initialize key material.

        Args:
            private_key: 32-byte key as hex, with or without 0x prefix

        Raises:
            SigningError: If the key is malformed or outside the curve order
        """
        try:
            normalized = validate_private_key(private_key)
            self._account = Account.from_key(normalized)
        except (ValidationError, ValueError, EthKeysValidationError) as e:
            # SECURITY: report only the error type
            raise SigningError(f"Invalid private key: {type(e).__name__}") from None

        self._address = self._account.address

    @property
    def address(self) -> str:
        """Checksummed signing address."""
        return self._address

    def derive_address(self) -> str:
        """Return the address derived from the private key."""
        return self._address

    def sign_digest(self, digest: bytes) -> bytes:
        """
        Sign a 32-byte digest.

        Args:
            digest: Message hash (already keccak'd)

        Returns:
            65-byte signature

        Raises:
            ValidationError: If digest is not 32 bytes
        """
        digest = bytes(digest)
        if len(digest) != DIGEST_LENGTH:
            raise ValidationError(
                f"Digest must be {DIGEST_LENGTH} bytes, got {len(digest)}"
            )

        signed = self._account.unsafe_sign_hash(digest)
        return bytes(signed.signature)

    def __repr__(self) -> str:
        return f"KeyMaterial(address={self._address})"


def recover_address(digest: bytes, signature: bytes) -> str:
    """
    Recover the signing address from a digest and 65-byte signature.

    Args:
        digest: 32-byte message hash
        signature: r || s || v, v either {0, 1} or {27, 28}

    Returns:
        Checksummed address of the signer

    Raises:
        ValidationError: If the signature cannot be parsed or recovered
    """
    signature = bytes(signature)
    if len(signature) != SIGNATURE_LENGTH:
        raise ValidationError(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )

    v = signature[64]
    if v >= 27:
        v -= 27

    try:
        sig = keys.Signature(signature_bytes=signature[:64] + bytes([v]))
        public_key = sig.recover_public_key_from_msg_hash(bytes(digest))
    except (BadSignature, EthKeysValidationError) as e:
        raise ValidationError(f"Signature recovery failed: {e}") from e

    return public_key.to_checksum_address()


def signature_to_hex(signature: bytes) -> str:
    """0x-prefixed hex encoding used in headers and order payloads."""
    return "0x" + bytes(signature).hex()


def signature_from_hex(signature: str) -> bytes:
    """Inverse of signature_to_hex."""
    raw = signature[2:] if signature.startswith("0x") else signature
    try:
        return bytes.fromhex(raw)
    except ValueError as e:
        raise ValidationError(f"Signature is not hex: {e}") from e
