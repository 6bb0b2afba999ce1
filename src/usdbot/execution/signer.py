"""
HMAC-SHA256 request signing for the Binance WebSocket API.

Signed methods authenticate by sending the API key, a millisecond
timestamp and a hex signature over the parameters rendered as
`key=value` pairs joined by `&` in a fixed, method-specific order.
"""

import hashlib
import hmac
from collections.abc import Iterable, Mapping
from typing import Any


class RequestSigner:
    """
    Signs requests for Binance API authentication.

    Uses HMAC-SHA256 as required by Binance. Stateless apart from
    the pre-encoded secret.
    """

    __slots__ = ("_secret_bytes",)

    def __init__(self, api_secret: str) -> None:
        """
        Initialize signer with API secret.

        Args:
            api_secret: Binance API secret key.
        """
        self._secret_bytes = api_secret.encode("utf-8")

    def sign(self, payload: str) -> str:
        """
        Generate HMAC-SHA256 signature for a canonical string.

        Args:
            payload: Canonical `key=value&...` string.

        Returns:
            Hexadecimal signature string.
        """
        return hmac.new(
            self._secret_bytes,
            payload.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    @staticmethod
    def canonical(params: Mapping[str, Any], fields: Iterable[str]) -> str:
        """
        Render `params` as the string that gets signed.

        Args:
            params: Request parameters.
            fields: Parameter names in signing order.

        Raises:
            KeyError: If a signed field is missing from params.
        """
        return "&".join(f"{name}={params[name]}" for name in fields)

    def sign_params(
        self,
        params: Mapping[str, Any],
        fields: Iterable[str],
    ) -> dict[str, Any]:
        """
        Create a new params dict with the signature added.

        Args:
            params: Request parameters including apiKey and timestamp.
            fields: Parameter names in signing order.

        Returns:
            Copy of params with a `signature` entry.
        """
        signed = dict(params)
        signed["signature"] = self.sign(self.canonical(params, fields))
        return signed
