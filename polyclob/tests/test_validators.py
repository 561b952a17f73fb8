"""Tests for validators."""

import pytest

from polyclob.utils.validators import (
    ZERO_ADDRESS,
    validate_address,
    validate_private_key,
    validate_token_id,
)
from polyclob.exceptions import ValidationError


def test_validate_token_id():
    """Test token ID validation."""
    assert validate_token_id("123456") == "123456"
    assert validate_token_id(123456) == "123456"

    with pytest.raises(ValidationError):
        validate_token_id("")  # Empty

    with pytest.raises(ValidationError):
        validate_token_id("abc")  # Not numeric

    with pytest.raises(ValidationError):
        validate_token_id(-1)

    with pytest.raises(ValidationError):
        validate_token_id(True)

    with pytest.raises(ValidationError):
        validate_token_id("\u00b2")  # Non-ASCII digit

    with pytest.raises(ValidationError):
        validate_token_id(str(2 ** 256))

    with pytest.raises(ValidationError):
        validate_token_id(2 ** 256)

    assert validate_token_id(str(2 ** 256 - 1)) == str(2 ** 256 - 1)


def test_validate_address():
    """Test address validation and checksumming."""
    lower = "0x2c7536e3605d9c16a7a3d7b1898e529396a65c23"
    assert validate_address(lower) == "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"
    assert validate_address(lower[2:]) == "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"
    assert validate_address(ZERO_ADDRESS) == ZERO_ADDRESS

    with pytest.raises(ValidationError):
        validate_address("0x1234")  # Too short

    with pytest.raises(ValidationError):
        validate_address("0x" + "g" * 40)  # Not hex

    with pytest.raises(ValidationError):
        validate_address(None)


def test_validate_private_key():
    """Test private key normalization."""
    key = "AB" * 32
    assert validate_private_key(key) == "0x" + "ab" * 32
    assert validate_private_key("0x" + key) == "0x" + "ab" * 32

    with pytest.raises(ValidationError):
        validate_private_key("0x1234")


def test_private_key_error_hides_value():
    """Rejected keys are not echoed back."""
    bad = "0x" + "ab" * 31 + "zz"
    with pytest.raises(ValidationError) as exc_info:
        validate_private_key(bad)
    assert bad not in str(exc_info.value)
