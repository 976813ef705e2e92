"""Tests for the CLOB client tier state machine and L2 request signing."""

from unittest.mock import MagicMock

import orjson
import pytest

from ..auth.authenticator import build_hmac_signature
from ..client import ClobClient
from ..config import ClobSettings
from ..exceptions import AuthError, AuthRequiredError, ValidationError, APIError
from ..models import (
    OrderArgs, MarketOrderArgs, Side, SignatureType, WalletConfig, L0, L1, L2,
)
from ..utils.clock import Clock
from .conftest import TEST_PRIVATE_KEY, TEST_ADDRESS, FUNDER_ADDRESS, TEST_TIMESTAMP

TOKEN_ID = "71321045679252212594626385532706912750332728571942532289631379312455583992563"


@pytest.fixture
def transport():
    return MagicMock()


@pytest.fixture
def make_client(settings, transport, metrics, clock):
    def factory(**kwargs):
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("transport", transport)
        kwargs.setdefault("metrics", metrics)
        kwargs.setdefault("clock", clock)
        return ClobClient(**kwargs)
    return factory


def sent(transport):
    """(method, path, headers, data, params) of the last transport.request call."""
    call = transport.request.call_args
    return (
        call.args[0],
        call.args[1],
        call.kwargs["headers"],
        call.kwargs["data"],
        call.kwargs["params"],
    )


class TestTiers:
    def test_l0_without_key(self, make_client):
        client = make_client()
        assert client.mode == L0
        assert client.get_address() is None

    def test_l1_with_key(self, make_client):
        client = make_client(key=TEST_PRIVATE_KEY)
        assert client.mode == L1
        assert client.get_address() == TEST_ADDRESS

    def test_l2_with_key_and_creds(self, make_client, creds):
        assert make_client(key=TEST_PRIVATE_KEY, creds=creds).mode == L2

    def test_creds_without_key_stay_l0(self, make_client, creds):
        assert make_client(creds=creds).mode == L0

    def test_set_and_clear_creds(self, make_client, creds):
        client = make_client(key=TEST_PRIVATE_KEY)

        client.set_creds(creds)
        assert client.mode == L2
        assert client.creds is creds

        client.clear_creds()
        assert client.mode == L1
        assert client.creds is None

    def test_l1_operation_at_l0(self, make_client, transport):
        client = make_client()
        with pytest.raises(AuthRequiredError) as exc_info:
            client.create_or_derive_api_key()
        assert exc_info.value.required_level == L1
        assert isinstance(exc_info.value, AuthError)
        transport.post.assert_not_called()

    def test_order_signing_at_l0(self, make_client):
        with pytest.raises(AuthRequiredError):
            make_client().create_order(
                OrderArgs(token_id=TOKEN_ID, price="0.5", size="10", side=Side.BUY)
            )

    @pytest.mark.parametrize("call", [
        lambda c: c.cancel("0xabc"),
        lambda c: c.cancel_orders(["0xabc"]),
        lambda c: c.cancel_all(),
        lambda c: c.get_orders(),
        lambda c: c.get_order("0xabc"),
        lambda c: c.get_api_keys(),
        lambda c: c.delete_api_key(),
    ])
    def test_l2_operations_at_l1(self, make_client, transport, call):
        client = make_client(key=TEST_PRIVATE_KEY)
        with pytest.raises(AuthRequiredError) as exc_info:
            call(client)
        assert exc_info.value.required_level == L2
        transport.request.assert_not_called()

    def test_create_and_post_at_l1_signs_nothing(self, make_client, metrics):
        client = make_client(key=TEST_PRIVATE_KEY)
        with pytest.raises(AuthRequiredError):
            client.create_and_post_order(
                OrderArgs(token_id=TOKEN_ID, price="0.5", size="10", side=Side.BUY)
            )
        assert metrics.registry.get_sample_value(
            "clob_orders_signed_total", {"side": "BUY", "signature_type": "0"}
        ) is None


class TestConstruction:
    def test_proxy_requires_funder(self, make_client):
        with pytest.raises(ValidationError):
            make_client(key=TEST_PRIVATE_KEY, signature_type=SignatureType.POLY_PROXY)

    def test_from_wallet_config(self, settings, transport, metrics):
        wallet = WalletConfig(
            private_key=f"  {TEST_PRIVATE_KEY}  ",
            signature_type=SignatureType.POLY_GNOSIS_SAFE,
            funder=FUNDER_ADDRESS
        )
        client = ClobClient.from_wallet_config(
            wallet, settings=settings, transport=transport, metrics=metrics
        )

        order = client.create_order(OrderArgs(token_id=TOKEN_ID, price="0.5", size="10", side=Side.BUY))
        assert order.maker == FUNDER_ADDRESS
        assert order.signer == TEST_ADDRESS
        assert order.signature_type == SignatureType.POLY_GNOSIS_SAFE

    def test_repr_hides_key(self, make_client):
        text = repr(make_client(key=TEST_PRIVATE_KEY))
        assert TEST_PRIVATE_KEY[2:] not in text
        assert "L1" in text

    def test_host_defaults_to_settings(self, make_client):
        assert make_client().host == "https://clob.example.test"


class TestCredentials:
    def test_create_or_derive_not_installed(self, make_client, transport):
        transport.post.return_value = {"apiKey": "k", "secret": "AAAA", "passphrase": "p"}
        client = make_client(key=TEST_PRIVATE_KEY)

        creds = client.create_or_derive_api_key()

        assert creds.api_key == "k"
        assert client.mode == L1

        client.set_creds(creds)
        assert client.mode == L2

    def test_derive(self, make_client, transport):
        transport.get.return_value = {"apiKey": "k", "secret": "AAAA", "passphrase": "p"}
        creds = make_client(key=TEST_PRIVATE_KEY).derive_api_key(nonce=1)

        assert creds.api_key == "k"
        assert transport.get.call_args.kwargs["headers"]["POLY_NONCE"] == "1"


class TestL2Requests:
    @pytest.fixture
    def client(self, make_client, creds):
        return make_client(key=TEST_PRIVATE_KEY, creds=creds)

    def assert_signed(self, transport, creds, method, path):
        sent_method, sent_path, headers, data, _ = sent(transport)
        assert sent_method == method
        assert sent_path == path
        assert headers["POLY_API_KEY"] == creds.api_key
        assert headers["POLY_PASSPHRASE"] == creds.api_passphrase
        assert headers["POLY_ADDRESS"] == TEST_ADDRESS
        assert headers["POLY_TIMESTAMP"] == str(TEST_TIMESTAMP)
        assert headers["POLY_SIGNATURE"] == build_hmac_signature(
            creds.api_secret, TEST_TIMESTAMP, method, path, data or ""
        )
        return data

    def test_post_order_signs_exact_body(self, client, transport, creds):
        order = client.create_order(OrderArgs(token_id=TOKEN_ID, price="0.5", size="10", side=Side.BUY))

        client.post_order(order, "FOK")

        data = self.assert_signed(transport, creds, "POST", "/order")
        payload = orjson.loads(data)
        assert payload == {"order": order.to_dict(), "owner": creds.api_key, "orderType": "FOK"}

    def test_create_and_post_order(self, client, transport, creds):
        client.create_and_post_order(OrderArgs(token_id=TOKEN_ID, price="0.5", size="10", side=Side.SELL))

        payload = orjson.loads(self.assert_signed(transport, creds, "POST", "/order"))
        assert payload["orderType"] == "GTC"
        assert payload["order"]["side"] == "SELL"

    def test_market_order(self, client, transport, creds):
        order = client.create_market_order(
            MarketOrderArgs(token_id=TOKEN_ID, amount="100", side=Side.BUY, price="0.5")
        )
        client.post_order(order)
        payload = orjson.loads(self.assert_signed(transport, creds, "POST", "/order"))
        assert payload["order"]["takerAmount"] == "200000000"

    def test_cancel(self, client, transport, creds):
        client.cancel("0xabc")
        assert self.assert_signed(transport, creds, "DELETE", "/order") == '{"orderID":"0xabc"}'

    def test_cancel_orders(self, client, transport, creds):
        client.cancel_orders(["0xabc", "0xdef"])
        assert self.assert_signed(transport, creds, "DELETE", "/orders") == '["0xabc","0xdef"]'

    def test_cancel_all(self, client, transport, creds):
        client.cancel_all()
        assert self.assert_signed(transport, creds, "DELETE", "/cancel-all") is None

    def test_get_orders(self, client, transport, creds):
        client.get_orders(market="0xmarket")
        self.assert_signed(transport, creds, "GET", "/data/orders")
        assert sent(transport)[4] == {"market": "0xmarket"}

    def test_get_order(self, client, transport, creds):
        client.get_order("0xabc")
        self.assert_signed(transport, creds, "GET", "/data/order/0xabc")

    def test_api_keys(self, client, transport, creds):
        client.get_api_keys()
        self.assert_signed(transport, creds, "GET", "/auth/api-keys")

        client.delete_api_key()
        self.assert_signed(transport, creds, "DELETE", "/auth/api-key")

    def test_rotation_uses_new_creds(self, client, transport):
        from ..models import ApiCreds

        rotated = ApiCreds(api_key="rotated", api_secret="c2VjcmV0", api_passphrase="pp")
        client.set_creds(rotated)
        client.cancel_all()

        self.assert_signed(transport, rotated, "DELETE", "/cancel-all")


class TestServerTime:
    def test_get_server_time(self, make_client, transport):
        transport.get.return_value = 1700000005
        assert make_client().get_server_time() == 1700000005
        transport.get.assert_called_with("/time")

    def test_bad_time_response(self, make_client, transport):
        transport.get.return_value = {"unexpected": True}
        with pytest.raises(APIError):
            make_client().get_server_time()

    def test_sync_clock(self, make_client, transport):
        transport.get.return_value = 1010
        client = make_client(clock=Clock(time_fn=lambda: 1000.7))

        assert client.sync_clock() == 10
        assert client.clock.now() == 1010

    def test_use_server_time_syncs_before_signing(self, make_client, transport, creds):
        settings = ClobSettings(_env_file=None, use_server_time=True, clob_url="https://clob.example.test")
        transport.get.return_value = 1010
        client = make_client(
            key=TEST_PRIVATE_KEY, creds=creds, settings=settings,
            clock=Clock(time_fn=lambda: 1000)
        )

        client.cancel_all()
        client.cancel_all()

        assert sent(transport)[2]["POLY_TIMESTAMP"] == "1010"
        assert transport.get.call_count == 1

    def test_get_ok(self, make_client, transport):
        transport.get.return_value = "OK"
        assert make_client().get_ok() == "OK"
        transport.get.assert_called_with("/")
