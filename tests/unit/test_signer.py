"""
Unit tests for RequestSigner.

Tests HMAC-SHA256 signing and the canonical parameter string.
"""

import hashlib
import hmac

import pytest

from usdbot.core.types import OrderIntent, OrderSide
from usdbot.exchange.protocol import METHODS, RpcMethod, account_status_params, order_place_params
from usdbot.execution.signer import RequestSigner


class TestRequestSigner:
    """Tests for RequestSigner."""

    @pytest.fixture
    def signer(self) -> RequestSigner:
        """Create a test signer."""
        return RequestSigner("test_secret_key")

    def test_sign_known_vector(self) -> None:
        """Test against the published Binance signing example."""
        signer = RequestSigner("NhqPtmdSJYdKjVHjA7PZj4Mge3R5YNiP1e3UZjInClVN65XAbvqqM6A7H5fATj0j")
        payload = (
            "symbol=LTCBTC&side=BUY&type=LIMIT&timeInForce=GTC&quantity=1"
            "&price=0.1&recvWindow=5000&timestamp=1499827319559"
        )

        assert signer.sign(payload) == (
            "c8db56825ae71d6d79447849e617115f4a920fa2acdcab2b053c4b2838bd6b71"
        )

    def test_sign_is_lowercase_hex(self, signer: RequestSigner) -> None:
        """Test signature format."""
        signature = signer.sign("apiKey=abc&timestamp=1")

        assert len(signature) == 64
        assert all(c in "0123456789abcdef" for c in signature)

    def test_sign_deterministic(self, signer: RequestSigner) -> None:
        """Test that same input produces same signature."""
        assert signer.sign("a=1") == signer.sign("a=1")

    def test_sign_different_inputs(self, signer: RequestSigner) -> None:
        """Test that different inputs produce different signatures."""
        assert signer.sign("symbol=USDCUSDT") != signer.sign("symbol=FDUSDUSDT")

    def test_canonical_follows_field_order(self) -> None:
        """Test that fields are rendered in the given order, not dict order."""
        params = {"timestamp": 1700000000000, "apiKey": "key"}

        assert RequestSigner.canonical(params, ("apiKey", "timestamp")) == (
            "apiKey=key&timestamp=1700000000000"
        )

    def test_canonical_missing_field(self) -> None:
        """Test that a missing signed field is an error."""
        with pytest.raises(KeyError):
            RequestSigner.canonical({"apiKey": "key"}, ("apiKey", "timestamp"))

    def test_sign_params_adds_signature(self, signer: RequestSigner) -> None:
        """Test that sign_params returns a signed copy."""
        params = {"apiKey": "key", "timestamp": 1700000000000}

        signed = signer.sign_params(params, ("apiKey", "timestamp"))

        assert "signature" not in params
        assert signed["apiKey"] == "key"
        assert signed["signature"] == signer.sign("apiKey=key&timestamp=1700000000000")


class TestSignedParams:
    """Tests for the per-method signed parameter builders."""

    @pytest.fixture
    def signer(self) -> RequestSigner:
        return RequestSigner("secret")

    def test_account_status_params(self, signer: RequestSigner) -> None:
        """Test account.status signs apiKey then timestamp."""
        params = account_status_params("key", signer, 1700000000000)

        expected = hmac.new(
            b"secret",
            b"apiKey=key&timestamp=1700000000000",
            hashlib.sha256,
        ).hexdigest()

        assert params == {
            "apiKey": "key",
            "timestamp": 1700000000000,
            "signature": expected,
        }

    def test_order_place_params(self, signer: RequestSigner) -> None:
        """Test order.place signs its fields in alphabetical order."""
        intent = OrderIntent(symbol="USDCUSDT", side=OrderSide.BUY, quantity=10, price=1.001)

        params = order_place_params(intent, "key", signer, 1700000000000)

        assert params["quoteOrderQty"] == 10
        assert params["side"] == "BUY"
        assert params["type"] == "MARKET"
        assert params["signature"] == signer.sign(
            "apiKey=key&quoteOrderQty=10&side=BUY&symbol=USDCUSDT"
            "&timestamp=1700000000000&type=MARKET"
        )

    def test_signed_methods(self) -> None:
        """Test which methods carry a signature."""
        assert METHODS[RpcMethod.ACCOUNT_STATUS].is_signed
        assert METHODS[RpcMethod.ORDER_PLACE].is_signed
        assert not METHODS[RpcMethod.TICKER_PRICE].is_signed
        assert not METHODS[RpcMethod.PING].is_signed
