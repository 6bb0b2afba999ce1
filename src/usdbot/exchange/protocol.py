"""
RPC method registry for the Binance WebSocket API.

Maps each method to the response model its frames decode into and,
for signed methods, the order in which parameters are signed. The
gateway resolves the registry once per correlation id.
"""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from usdbot.config.constants import (
    METHOD_ACCOUNT_STATUS,
    METHOD_ORDER_PLACE,
    METHOD_PING,
    METHOD_TICKER_PRICE,
)
from usdbot.core.types import OrderIntent
from usdbot.exchange.models import (
    AccountStatusResponse,
    OrderPlaceResponse,
    PingResponse,
    ResponseEnvelope,
    TickerPriceResponse,
)
from usdbot.execution.signer import RequestSigner


class RpcMethod(str, Enum):
    """Methods this bot calls."""

    PING = METHOD_PING
    ACCOUNT_STATUS = METHOD_ACCOUNT_STATUS
    TICKER_PRICE = METHOD_TICKER_PRICE
    ORDER_PLACE = METHOD_ORDER_PLACE


@dataclass(slots=True, frozen=True)
class MethodSpec:
    """How one method is signed and decoded."""

    response_model: type[ResponseEnvelope]
    signed_fields: tuple[str, ...] = ()

    @property
    def is_signed(self) -> bool:
        return bool(self.signed_fields)


METHODS: dict[RpcMethod, MethodSpec] = {
    RpcMethod.PING: MethodSpec(PingResponse),
    RpcMethod.ACCOUNT_STATUS: MethodSpec(
        AccountStatusResponse,
        signed_fields=("apiKey", "timestamp"),
    ),
    RpcMethod.TICKER_PRICE: MethodSpec(TickerPriceResponse),
    RpcMethod.ORDER_PLACE: MethodSpec(
        OrderPlaceResponse,
        signed_fields=("apiKey", "quoteOrderQty", "side", "symbol", "timestamp", "type"),
    ),
}


def response_model_for(method: RpcMethod) -> type[ResponseEnvelope]:
    """Get the response model frames of `method` decode into."""
    return METHODS[method].response_model


def new_request_id() -> str:
    """Fresh correlation id (UUID4 hex)."""
    return uuid.uuid4().hex


def build_request(
    request_id: str,
    method: RpcMethod,
    params: dict[str, Any] | None,
) -> dict[str, Any]:
    """Build the `{id, method, params}` request envelope."""
    request: dict[str, Any] = {"id": request_id, "method": method.value}
    if params is not None:
        request["params"] = params
    return request


def sign_request(
    method: RpcMethod,
    params: dict[str, Any],
    signer: RequestSigner,
) -> dict[str, Any]:
    """Add the signature for a signed method's params."""
    return signer.sign_params(params, METHODS[method].signed_fields)


# =============================================================================
# Parameter Builders
# =============================================================================


def account_status_params(
    api_key: str,
    signer: RequestSigner,
    timestamp: int,
) -> dict[str, Any]:
    """Signed params for `account.status`."""
    params = {"apiKey": api_key, "timestamp": timestamp}
    return sign_request(RpcMethod.ACCOUNT_STATUS, params, signer)


def ticker_price_params(symbols: Sequence[str]) -> dict[str, Any]:
    """Params for `ticker.price` over several symbols."""
    return {"symbols": list(symbols)}


def order_place_params(
    intent: OrderIntent,
    api_key: str,
    signer: RequestSigner,
    timestamp: int,
) -> dict[str, Any]:
    """
    Signed params for a market `order.place`.

    The quantity is sent as `quoteOrderQty`: the amount of the quote
    asset to spend (BUY) or receive (SELL).
    """
    params = {
        "apiKey": api_key,
        "quoteOrderQty": intent.quantity,
        "side": intent.side.value,
        "symbol": intent.symbol,
        "timestamp": timestamp,
        "type": intent.type.value,
    }
    return sign_request(RpcMethod.ORDER_PLACE, params, signer)
