"""Tests for ClobClient against a fake transport."""

from unittest.mock import Mock

import orjson
import pytest
from pydantic import SecretStr
from web3 import Web3

from polyclob.auth.authenticator import l2_signature
from polyclob.client import ClobClient
from polyclob.config import POLYGON
from polyclob.exceptions import (
    APIError,
    AuthenticationError,
    ConfigError,
    MissingCredentialsError,
    OrderRejectedError,
    InvalidOrderError,
    RateLimitError,
    TimeoutError,
)
from polyclob.models import (
    ApiCredentials,
    OrderArgs,
    OrderType,
    Side,
    SignatureType,
    TradeParams,
)
from polyclob.trading.signer_variant import EOA, GnosisSafeWallet

from .conftest import HOST, NOW, PRIVATE_KEY, SAFE_ADDRESS


TOKEN_ID = "1234567890"

CREDS_RESPONSE = {
    "apiKey": "6f1b2c3d-0000-4000-8000-1234567890ab",
    "secret": "c3Nzc3Nzc3Nzc3Nzc3Nzc3Nzc3Nzc3Nzc3Nzc3M=",
    "passphrase": "correct-horse-battery",
}


def trade(trade_id):
    return {
        "id": trade_id,
        "market": "0xmarket",
        "asset_id": TOKEN_ID,
        "side": "BUY",
        "size": "10",
        "price": "0.5",
        "status": "MATCHED",
        "maker_orders": [],
    }


def order_args():
    return OrderArgs(token_id=TOKEN_ID, price="0.5", size="10", side=Side.BUY)


class TestConstruction:

    def test_with_l1_headers(self, settings, transport, address):
        client = ClobClient.with_l1_headers(
            HOST, PRIVATE_KEY, POLYGON, settings=settings, transport=transport
        )
        assert client.address == address
        assert isinstance(client.signer_variant, EOA)
        assert not client.credential_store.has_credentials()
        transport.request.assert_not_called()

    def test_with_l2_headers(self, settings, transport, credentials):
        client = ClobClient.with_l2_headers(
            HOST, PRIVATE_KEY, POLYGON, credentials, settings=settings, transport=transport
        )
        assert client.credential_store.credentials == credentials

    def test_from_settings(self, settings, transport, address):
        configured = settings.model_copy(update={
            "private_key": SecretStr(PRIVATE_KEY),
            "funder": SAFE_ADDRESS,
            "signature_type": 2,
        })
        client = ClobClient.from_settings(configured, transport=transport)

        assert client.address == address
        assert isinstance(client.signer_variant, GnosisSafeWallet)
        assert client.host == HOST
        assert PRIVATE_KEY not in repr(client)

    def test_public_only_client(self, settings, transport):
        client = ClobClient(host=HOST, chain_id=POLYGON, settings=settings, transport=transport)
        assert client.address is None
        with pytest.raises(ConfigError):
            client.set_order_builder_params(SignatureType.EOA)
        with pytest.raises(ConfigError):
            client.create_or_derive_api_key()
        transport.request.assert_not_called()

    def test_contract_addresses(self, client):
        assert client.get_exchange_address() == "0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E"
        assert client.get_exchange_address(neg_risk=True) == "0xC5d563A36AE78145C45a50134d48A1215220f80a"
        assert client.get_collateral_address() == "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"
        assert client.get_conditional_address() == "0x4D97DCd97eC945f40cF65F87097ACe5EA0476045"


class TestGetOk:

    def test_ok(self, client, transport):
        transport.request.return_value = "OK"
        assert client.get_ok() is True
        transport.request.assert_called_once_with("GET", "/", retry=False)

    @pytest.mark.parametrize("error", [
        APIError("down", status_code=503),
        TimeoutError("slow"),
        RuntimeError("anything"),
    ])
    def test_failure_is_false(self, client, transport, error):
        transport.request.side_effect = error
        assert client.get_ok() is False


class TestApiCredentials:

    def test_create_succeeds(self, client, transport):
        transport.request.return_value = CREDS_RESPONSE

        creds = client.create_or_derive_api_key()

        assert creds.api_key == CREDS_RESPONSE["apiKey"]
        assert client.credential_store.credentials == creds
        transport.request.assert_called_once()
        method, path = transport.request.call_args.args
        assert (method, path) == ("POST", "/auth/api-key")

    def test_falls_back_to_derive(self, client, transport, address):
        transport.request.side_effect = [
            APIError("exists", status_code=400),
            CREDS_RESPONSE,
        ]

        creds = client.create_or_derive_api_key(nonce=7)

        assert creds.secret == CREDS_RESPONSE["secret"]
        assert client.credential_store.has_credentials()

        calls = transport.request.call_args_list
        assert [c.args for c in calls] == [("POST", "/auth/api-key"), ("GET", "/auth/derive-api-key")]
        for call in calls:
            headers = call.kwargs["headers"]
            assert headers["POLY_ADDRESS"] == address
            assert headers["POLY_NONCE"] == "7"
            assert headers["POLY_TIMESTAMP"] == str(NOW)

    def test_both_refused(self, client, transport):
        transport.request.side_effect = [
            APIError("exists", status_code=400),
            APIError("nope", status_code=400),
        ]
        with pytest.raises(AuthenticationError):
            client.create_or_derive_api_key()
        assert not client.credential_store.has_credentials()

    def test_malformed_response(self, client, transport):
        transport.request.side_effect = [{}, {"apiKey": "only-a-key"}]
        with pytest.raises(AuthenticationError) as exc_info:
            client.create_or_derive_api_key()
        assert "only-a-key" not in str(exc_info.value)
        assert not client.credential_store.has_credentials()

    def test_timeout_is_not_swallowed(self, client, transport):
        transport.request.side_effect = TimeoutError("slow")
        with pytest.raises(TimeoutError):
            client.create_or_derive_api_key()
        assert transport.request.call_count == 1

    @pytest.mark.parametrize("error", [
        APIError("Connection error: refused"),
        APIError("server error", status_code=503),
        RateLimitError("slow down", endpoint="/auth/api-key"),
    ])
    def test_outage_is_not_a_refusal(self, client, transport, error):
        transport.request.side_effect = error

        with pytest.raises(APIError) as exc_info:
            client.create_or_derive_api_key()

        assert exc_info.value is error
        assert transport.request.call_count == 1
        assert not client.credential_store.has_credentials()

    def test_derive_outage_surfaces_unchanged(self, client, transport):
        outage = APIError("server error", status_code=502)
        transport.request.side_effect = [APIError("exists", status_code=400), outage]

        with pytest.raises(APIError) as exc_info:
            client.create_or_derive_api_key()

        assert exc_info.value is outage
        assert not isinstance(exc_info.value, AuthenticationError)

    def test_create_api_key_does_not_store(self, client, transport):
        transport.request.return_value = CREDS_RESPONSE
        client.create_api_key()
        assert not client.credential_store.has_credentials()

    def test_server_time_for_auth(self, client, transport):
        client.settings = client.settings.model_copy(update={"use_server_time": True})
        transport.request.side_effect = [NOW + 5, CREDS_RESPONSE]

        client.create_api_key()

        assert transport.request.call_args_list[0].args == ("GET", "/time")
        assert transport.request.call_args_list[1].kwargs["headers"]["POLY_TIMESTAMP"] == str(NOW + 5)

    def test_set_api_creds(self, client, credentials):
        client.set_api_creds(credentials)
        assert client.credential_store.require() == credentials

    def test_delete_api_key_clears_store(self, client, transport, credentials):
        client.set_api_creds(credentials)
        transport.request.return_value = "OK"

        client.delete_api_key()

        assert transport.request.call_args.args == ("DELETE", "/auth/api-key")
        assert not client.credential_store.has_credentials()

    def test_get_api_keys(self, client, transport, credentials):
        client.set_api_creds(credentials)
        transport.request.return_value = {"apiKeys": [credentials.api_key]}
        assert client.get_api_keys() == [credentials.api_key]

    def test_l2_headers_come_from_authenticator(self, client, transport, credentials):
        client.set_api_creds(credentials)
        assert client.l2_auth.store is client.credential_store
        transport.request.return_value = {"apiKeys": []}

        client.get_api_keys()

        headers = transport.request.call_args.kwargs["headers"]
        expected = client.l2_auth.build_headers("GET", "/auth/api-keys", b"", timestamp=NOW)
        assert headers == expected.as_dict()


class TestMissingCredentials:
    """L2 calls fail before any request goes out."""

    @pytest.mark.parametrize("call", [
        lambda c: c.get_trades(),
        lambda c: c.get_orders(),
        lambda c: c.get_order("0xabc"),
        lambda c: c.get_api_keys(),
        lambda c: c.delete_api_key(),
        lambda c: c.cancel("0xabc"),
        lambda c: c.cancel_all(),
        lambda c: c.create_and_post_order(order_args()),
    ])
    def test_raises_without_transport_call(self, client, transport, call):
        with pytest.raises(MissingCredentialsError):
            call(client)
        transport.request.assert_not_called()

    def test_post_order(self, client, transport):
        signed = client.create_order(order_args())
        with pytest.raises(MissingCredentialsError):
            client.post_order(signed)
        transport.request.assert_not_called()

    def test_server_time_not_fetched(self, client, transport):
        client.settings = client.settings.model_copy(update={"use_server_time": True})
        with pytest.raises(MissingCredentialsError):
            client.cancel_all()
        transport.request.assert_not_called()


class TestOrders:

    def test_post_order_signs_sent_bytes(self, client, transport, credentials, address):
        client.set_api_creds(credentials)
        transport.request.return_value = {"success": True, "orderID": "0xorder", "status": "live"}
        signed = client.create_order(order_args())

        result = client.post_order(signed, OrderType.GTC)

        assert result.success is True
        assert result.order_id == "0xorder"

        call = transport.request.call_args
        assert call.args == ("POST", "/order")
        body = call.kwargs["body"]
        headers = call.kwargs["headers"]

        assert headers["POLY_SIGNATURE"] == l2_signature(credentials.secret, NOW, "POST", "/order", body)
        assert headers["POLY_ADDRESS"] == address
        assert call.kwargs["retry"] is False

        sent = orjson.loads(body)
        assert sent["owner"] == credentials.api_key
        assert sent["orderType"] == "GTC"
        assert sent["order"]["signature"] == signed.signature
        assert sent["order"]["makerAmount"] == "5000000"

    def test_rejected_order(self, client, transport, credentials):
        client.set_api_creds(credentials)
        transport.request.return_value = {"success": False, "errorMsg": "something odd"}
        with pytest.raises(OrderRejectedError):
            client.create_and_post_order(order_args())

    def test_tick_size_error(self, client, transport, credentials):
        client.set_api_creds(credentials)
        transport.request.return_value = {"success": False, "errorMsg": "INVALID_ORDER_MIN_TICK_SIZE"}
        with pytest.raises(InvalidOrderError):
            client.create_and_post_order(order_args())

    def test_gnosis_safe_orders(self, client):
        client.set_order_builder_params(SignatureType.POLY_GNOSIS_SAFE, SAFE_ADDRESS)
        signed = client.create_order(order_args())

        assert signed.order.maker == Web3.to_checksum_address(SAFE_ADDRESS)
        assert signed.order.signer == client.address
        assert signed.to_payload()["signatureType"] == 2

    def test_safe_without_funder(self, client):
        client.set_order_builder_params(SignatureType.POLY_GNOSIS_SAFE, None)
        with pytest.raises(ConfigError):
            client.create_order(order_args())

    def test_unknown_signature_type(self, client):
        with pytest.raises(ConfigError):
            client.set_order_builder_params(9, SAFE_ADDRESS)

    def test_cancel(self, client, transport, credentials):
        client.set_api_creds(credentials)
        transport.request.return_value = {"canceled": ["0xabc"], "not_canceled": {}}

        client.cancel("0xabc")

        call = transport.request.call_args
        assert call.args == ("DELETE", "/order")
        assert orjson.loads(call.kwargs["body"]) == {"orderID": "0xabc"}


class TestTrades:

    def test_pages_until_end(self, client, transport, credentials):
        client.set_api_creds(credentials)
        transport.request.side_effect = [
            {"data": [trade("t1"), trade("t2")], "next_cursor": "Mg=="},
            {"data": [trade("t3")], "next_cursor": "LTE="},
        ]

        trades = client.get_trades(TradeParams(market="0xmarket"))
        transport.request.assert_not_called()

        assert [t.id for t in trades] == ["t1", "t2", "t3"]
        params = [c.kwargs["params"] for c in transport.request.call_args_list]
        assert params == [
            {"market": "0xmarket", "next_cursor": "MA=="},
            {"market": "0xmarket", "next_cursor": "Mg=="},
        ]

    def test_each_page_signed_for_path_only(self, client, transport, credentials):
        client.set_api_creds(credentials)
        transport.request.return_value = {"data": [], "next_cursor": "LTE="}

        list(client.get_trades())

        headers = transport.request.call_args.kwargs["headers"]
        assert headers["POLY_SIGNATURE"] == l2_signature(credentials.secret, NOW, "GET", "/data/trades")

    def test_start_cursor(self, client, transport, credentials):
        client.set_api_creds(credentials)
        transport.request.return_value = {"data": [trade("t9")], "next_cursor": "LTE="}

        assert [t.id for t in client.get_trades(next_cursor="OQ==")] == ["t9"]
        assert transport.request.call_args.kwargs["params"] == {"next_cursor": "OQ=="}

    def test_trade_decimals(self, client, transport, credentials):
        client.set_api_creds(credentials)
        transport.request.return_value = {"data": [trade("t1")], "next_cursor": "LTE="}

        (t,) = client.get_trades().all()
        assert str(t.price) == "0.5"
        assert t.side == Side.BUY


class TestLifecycle:

    def test_context_manager_closes_transport(self, settings, transport):
        with ClobClient(host=HOST, settings=settings, transport=transport):
            pass
        transport.close.assert_called_once()

    def test_credentials_model_rejects_blank(self):
        with pytest.raises(ValueError):
            ApiCredentials(api_key="k", secret=" ", passphrase="p")

    def test_transport_is_shared_protocol(self, settings):
        fake = Mock(spec=["request"])
        client = ClobClient(host=HOST, settings=settings, transport=fake)
        client.close()
        fake.request.assert_not_called()
