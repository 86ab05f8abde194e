"""
HMAC-SHA256 request signing for Binance API.

Only endpoints that mutate account or order state are signed. The
secret never leaves this module and signed parameters are never logged.
"""

import hashlib
import hmac
from urllib.parse import urlencode

from ringtrader.config.constants import DEFAULT_RECV_WINDOW_MS
from ringtrader.utils.time import get_timestamp_ms


Params = dict[str, str | int | float]


class RequestSigner:
    """
    Signs requests for Binance API authentication.

    Uses HMAC-SHA256 over the canonical query string, as required by
    Binance. The canonical form sorts parameters by name; the same
    ordering is sent on the wire so the exchange recomputes an
    identical string.
    """

    __slots__ = ("_secret_bytes", "_recv_window_ms")

    def __init__(self, api_secret: str, recv_window_ms: int = DEFAULT_RECV_WINDOW_MS) -> None:
        """
        Initialize signer with API secret.

        Args:
            api_secret: Binance API secret key.
            recv_window_ms: How long a signed request stays valid.
        """
        # Pre-encode secret for faster HMAC computation
        self._secret_bytes = api_secret.encode("utf-8")
        self._recv_window_ms = recv_window_ms

    def __repr__(self) -> str:
        return f"RequestSigner(recv_window_ms={self._recv_window_ms})"

    @property
    def recv_window_ms(self) -> int:
        return self._recv_window_ms

    def sign(self, query_string: str) -> str:
        """
        Generate HMAC-SHA256 signature for a query string.

        Args:
            query_string: URL-encoded query parameters.

        Returns:
            Hexadecimal signature string.
        """
        return hmac.new(
            self._secret_bytes,
            query_string.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    @staticmethod
    def canonicalize(params: Params) -> Params:
        """Return a copy of params ordered by parameter name."""
        return {key: params[key] for key in sorted(params)}

    def create_signed_params(self, params: Params) -> Params:
        """
        Create a new params dict with timestamp, receive window and signature.

        Existing timestamp or recvWindow values are preserved.

        Args:
            params: Original request parameters.

        Returns:
            New canonical params dict ending with the signature.
        """
        unsigned = dict(params)
        unsigned.setdefault("timestamp", get_timestamp_ms())
        unsigned.setdefault("recvWindow", self._recv_window_ms)

        signed_params = self.canonicalize(unsigned)
        signed_params["signature"] = self.sign(urlencode(signed_params))

        return signed_params
