"""Tests for KeyMaterial signing and address recovery."""

import pytest
from eth_account import Account
from eth_utils import keccak

from polyclob.auth.key_material import (
    KeyMaterial,
    recover_address,
    signature_from_hex,
    signature_to_hex,
)
from polyclob.exceptions import SigningError, ValidationError

from .conftest import PRIVATE_KEY


DIGEST = keccak(b"polyclob test digest")


class TestKeyMaterial:
    """Key loading and signing."""

    def test_address_matches_eth_account(self, key_material):
        assert key_material.address == Account.from_key(PRIVATE_KEY).address
        assert key_material.derive_address() == key_material.address

    def test_accepts_key_without_prefix(self):
        assert KeyMaterial(PRIVATE_KEY[2:]).address == KeyMaterial(PRIVATE_KEY).address

    def test_signature_recovers_to_signer(self, key_material):
        signature = key_material.sign_digest(DIGEST)

        assert len(signature) == 65
        assert signature[64] in (27, 28)
        assert recover_address(DIGEST, signature) == key_material.address

    def test_signing_is_deterministic(self, key_material):
        assert key_material.sign_digest(DIGEST) == key_material.sign_digest(DIGEST)

    def test_different_digest_different_signature(self, key_material):
        other = keccak(b"another digest")
        assert key_material.sign_digest(DIGEST) != key_material.sign_digest(other)

    def test_rejects_short_digest(self, key_material):
        with pytest.raises(ValidationError):
            key_material.sign_digest(b"\x00" * 31)

    @pytest.mark.parametrize("bad_key", [
        "",
        "0x1234",
        "0x" + "z" * 64,
        "0x" + "f" * 64,  # above the secp256k1 curve order
    ])
    def test_malformed_key_raises_signing_error(self, bad_key):
        with pytest.raises(SigningError):
            KeyMaterial(bad_key)

    def test_error_does_not_echo_key(self):
        bad_key = "0x" + "f" * 63 + "g"
        with pytest.raises(SigningError) as exc_info:
            KeyMaterial(bad_key)
        assert bad_key not in str(exc_info.value)
        assert "f" * 63 not in str(exc_info.value)

    def test_repr_hides_key(self, key_material):
        assert PRIVATE_KEY[2:] not in repr(key_material)
        assert key_material.address in repr(key_material)


class TestRecovery:
    """recover_address and hex helpers."""

    def test_recover_accepts_zero_one_v(self, key_material):
        signature = key_material.sign_digest(DIGEST)
        normalized = signature[:64] + bytes([signature[64] - 27])
        assert recover_address(DIGEST, normalized) == key_material.address

    def test_recover_rejects_wrong_length(self):
        with pytest.raises(ValidationError):
            recover_address(DIGEST, b"\x01" * 64)

    def test_hex_round_trip(self, key_material):
        signature = key_material.sign_digest(DIGEST)
        encoded = signature_to_hex(signature)

        assert encoded.startswith("0x")
        assert len(encoded) == 2 + 130
        assert signature_from_hex(encoded) == signature

    def test_from_hex_rejects_garbage(self):
        with pytest.raises(ValidationError):
            signature_from_hex("0xnothex")
