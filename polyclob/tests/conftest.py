"""Shared fixtures for polyclob tests."""

import base64
from unittest.mock import Mock

import pytest
from eth_account import Account

from polyclob.auth.key_material import KeyMaterial
from polyclob.client import ClobClient
from polyclob.config import ClobSettings, POLYGON
from polyclob.models import ApiCredentials


# Well-known test key, never funded
PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
SAFE_ADDRESS = "0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF"
HOST = "https://clob.test"
NOW = 1_700_000_000


@pytest.fixture
def address():
    return Account.from_key(PRIVATE_KEY).address


@pytest.fixture
def key_material():
    return KeyMaterial(PRIVATE_KEY)


@pytest.fixture
def credentials():
    return ApiCredentials(
        api_key="6f1b2c3d-0000-4000-8000-1234567890ab",
        secret=base64.urlsafe_b64encode(b"s" * 32).decode(),
        passphrase="correct-horse-battery"
    )


@pytest.fixture
def settings():
    return ClobSettings(
        _env_file=None,
        clob_url=HOST,
        chain_id=POLYGON,
        max_retries=0,
        enable_circuit_breaker=False,
        use_server_time=False,
    )


@pytest.fixture
def transport():
    """Transport fake; set .request.return_value / .side_effect per test."""
    return Mock(spec=["request", "close"])


@pytest.fixture
def client(settings, transport):
    return ClobClient(
        host=HOST,
        chain_id=POLYGON,
        key=PRIVATE_KEY,
        settings=settings,
        transport=transport,
        clock=lambda: NOW,
    )
