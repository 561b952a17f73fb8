"""Tests for models, contract config and response parsing."""

from decimal import Decimal

import pytest

from polyclob.api.clob import parse_credentials, serialize_body
from polyclob.config import AMOY, POLYGON
from polyclob.contracts import CONTRACTS, get_contract_config
from polyclob.exceptions import AuthenticationError, ConfigError
from polyclob.models import (
    ApiCredentials,
    OpenOrderParams,
    OrderArgs,
    Side,
    TradeParams,
)


class TestApiCredentials:

    def test_alias_and_field_name(self):
        by_alias = ApiCredentials.model_validate({"apiKey": "k", "secret": "s", "passphrase": "p"})
        by_name = ApiCredentials(api_key="k", secret="s", passphrase="p")
        assert by_alias == by_name

    def test_repr_hides_secret(self):
        creds = ApiCredentials(api_key="k", secret="very-secret", passphrase="pass-phrase")
        assert "very-secret" not in repr(creds)
        assert "pass-phrase" not in repr(creds)

    def test_frozen(self):
        creds = ApiCredentials(api_key="k", secret="s", passphrase="p")
        with pytest.raises(ValueError):
            creds.api_key = "other"


class TestParseCredentials:

    def test_valid(self):
        creds = parse_credentials({"apiKey": "k", "secret": "s", "passphrase": "p"})
        assert creds.api_key == "k"

    @pytest.mark.parametrize("response", [
        None,
        "OK",
        [],
        {"error": "Could not derive api key"},
        {"apiKey": "k", "secret": "", "passphrase": "p"},
    ])
    def test_malformed(self, response):
        with pytest.raises(AuthenticationError):
            parse_credentials(response)

    def test_message_lists_fields_not_values(self):
        with pytest.raises(AuthenticationError) as exc_info:
            parse_credentials({"apiKey": "k", "secret": "topsecret"})
        assert "topsecret" not in str(exc_info.value)
        assert "passphrase" in str(exc_info.value)


class TestQueryParams:

    def test_trade_params_drop_empty(self):
        params = TradeParams(market="0xm", after=1700000000)
        assert params.to_query() == {"market": "0xm", "after": 1700000000}

    def test_open_order_params(self):
        assert OpenOrderParams().to_query() == {}
        assert OpenOrderParams(asset_id="1").to_query() == {"asset_id": "1"}


class TestOrderArgs:

    def test_decimal_conversion(self):
        args = OrderArgs(token_id="1", price=0.55, size="10", side="BUY")
        assert args.price == Decimal("0.55")
        assert args.size == Decimal("10")
        assert args.side is Side.BUY

    def test_side_uint8(self):
        assert Side.BUY.as_uint8 == 0
        assert Side.SELL.as_uint8 == 1


class TestContracts:

    def test_known_chains(self):
        assert get_contract_config(POLYGON) == CONTRACTS[POLYGON]
        assert get_contract_config(AMOY).exchange != CONTRACTS[POLYGON].exchange

    def test_override(self):
        config = get_contract_config(POLYGON, neg_risk_exchange="0x" + "2" * 40)
        assert config.exchange_for(neg_risk=True) == "0x" + "2" * 40
        assert config.exchange_for() == CONTRACTS[POLYGON].exchange

    def test_unknown_chain(self):
        with pytest.raises(ConfigError):
            get_contract_config(56)


def test_serialize_body_is_compact():
    assert serialize_body({"orderID": "0xabc", "n": 1}) == b'{"orderID":"0xabc","n":1}'
