"""
Unit tests for RequestSigner.

Tests HMAC-SHA256 signing and parameter handling.
"""

import hashlib
import hmac
from urllib.parse import urlencode

import pytest

from ringtrader.exchange.signer import RequestSigner


class TestRequestSigner:
    """Tests for RequestSigner."""

    @pytest.fixture
    def signer(self) -> RequestSigner:
        """Create a test signer."""
        return RequestSigner("test_secret_key", recv_window_ms=5000)

    def test_sign_matches_hmac_sha256(self, signer: RequestSigner) -> None:
        """Signature is the hex HMAC-SHA256 of the query string."""
        query_string = "symbol=BTCUSDT&side=BUY&type=MARKET"

        expected = hmac.new(b"test_secret_key", query_string.encode(), hashlib.sha256).hexdigest()

        assert signer.sign(query_string) == expected
        assert len(expected) == 64

    def test_sign_binance_documentation_example(self) -> None:
        """Known vector from the Binance API documentation."""
        signer = RequestSigner("NhqPtmdSJYdKjVHjA7PZj4Mge3R5YNiP1e3UZjInClVN65XAbvqqM6A7H5fATj0j")
        query = (
            "symbol=LTCBTC&side=BUY&type=LIMIT&timeInForce=GTC&quantity=1"
            "&price=0.1&recvWindow=5000&timestamp=1499827319559"
        )

        assert signer.sign(query) == (
            "c8db56825ae71d6d79447849e617115f4a920fa2acdcab2b053c4b2838bd6b71"
        )

    def test_sign_different_inputs(self, signer: RequestSigner) -> None:
        """Test that different inputs produce different signatures."""
        assert signer.sign("symbol=BTCUSDT") != signer.sign("symbol=ETHUSDT")

    def test_canonicalize_sorts_by_name(self) -> None:
        params = {"type": "MARKET", "symbol": "BTCUSDT", "quantity": "0.001", "side": "SELL"}

        assert list(RequestSigner.canonicalize(params)) == ["quantity", "side", "symbol", "type"]

    def test_create_signed_params_adds_timestamp_and_window(self, signer: RequestSigner) -> None:
        """Signed params carry timestamp, recvWindow and a trailing signature."""
        params = {"symbol": "BTCUSDT", "side": "BUY", "type": "MARKET", "quantity": "0.001"}

        signed = signer.create_signed_params(params)

        assert "timestamp" in signed
        assert signed["recvWindow"] == 5000
        assert list(signed)[-1] == "signature"

        unsigned = {k: v for k, v in signed.items() if k != "signature"}
        assert list(unsigned) == sorted(unsigned)
        assert signed["signature"] == signer.sign(urlencode(unsigned))

    def test_create_signed_params_does_not_mutate_input(self, signer: RequestSigner) -> None:
        params = {"symbol": "BTCUSDT"}

        signer.create_signed_params(params)

        assert params == {"symbol": "BTCUSDT"}

    def test_existing_timestamp_preserved(self, signer: RequestSigner) -> None:
        signed = signer.create_signed_params({"symbol": "BTCUSDT", "timestamp": 1704067200000})

        assert signed["timestamp"] == 1704067200000

    def test_repr_hides_secret(self, signer: RequestSigner) -> None:
        assert "test_secret_key" not in repr(signer)
