"""
Input validation utilities.

Validates keys, addresses and token ids before they reach signing code.
"""

import re
from typing import Any

from web3 import Web3

from ..exceptions import ValidationError


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_ADDRESS_RE = re.compile(r"^[0-9a-fA-F]{40}$")
_PRIVATE_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")
_DECIMAL_RE = re.compile(r"^[0-9]+$")

UINT256_MAX = 2**256 - 1


def validate_token_id(token_id: Any) -> str:
    """
    Validate token ID format.

    Args:
        token_id: ERC1155 token ID (decimal string or int)

    Returns:
        Token ID as decimal string

    Raises:
        ValidationError: If token ID is invalid
    """
    if isinstance(token_id, int) and not isinstance(token_id, bool):
        if token_id < 0 or token_id > UINT256_MAX:
            raise ValidationError(f"Token ID out of uint256 range, got {token_id}")
        return str(token_id)

    if not isinstance(token_id, str):
        raise ValidationError(f"Token ID must be string, got {type(token_id)}")

    if not token_id:
        raise ValidationError("Token ID cannot be empty")

    # Token IDs are uint256 values as ASCII decimal strings
    if not _DECIMAL_RE.match(token_id):
        raise ValidationError(f"Token ID must be numeric string, got {token_id!r}")
    if int(token_id) > UINT256_MAX:
        raise ValidationError("Token ID out of uint256 range")

    return token_id


def validate_address(address: Any) -> str:
    """
    Validate Ethereum address.

    Args:
        address: Ethereum address

    Returns:
        Checksummed address

    Raises:
        ValidationError: If address is invalid
    """
    if not isinstance(address, str):
        raise ValidationError(f"Address must be string, got {type(address)}")

    addr = address[2:] if address.startswith("0x") else address

    # 20 bytes = 40 hex chars
    if not _ADDRESS_RE.match(addr):
        raise ValidationError(f"Invalid Ethereum address: {address}")

    return Web3.to_checksum_address(f"0x{addr}")


def validate_private_key(private_key: Any) -> str:
    """
    Validate private key format.

    Args:
        private_key: Private key hex string

    Returns:
        Normalized private key (0x-prefixed, lowercase)

    Raises:
        ValidationError: If private key is invalid
    """
    if not isinstance(private_key, str):
        raise ValidationError(f"Private key must be string, got {type(private_key)}")

    key = private_key[2:] if private_key.startswith("0x") else private_key

    # 32 bytes = 64 hex chars. Never echo the key back in the message.
    if not _PRIVATE_KEY_RE.match(key):
        raise ValidationError("Invalid private key format")

    return f"0x{key.lower()}"
