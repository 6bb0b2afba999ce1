"""Exchange integration over the Binance WebSocket API."""

from usdbot.exchange.errors import (
    ConnectionLostError,
    ExchangeAPIError,
    GatewayError,
    NotConnectedError,
    ResponseDecodeError,
    TransportError,
)
from usdbot.exchange.gateway import ConnectionState, ExchangeGateway
from usdbot.exchange.models import (
    AccountStatusResponse,
    OrderPlaceResponse,
    PingResponse,
    ResponseEnvelope,
    TickerPriceResponse,
)
from usdbot.exchange.pending import CorrelationTable, PendingRequest, RequestFailure
from usdbot.exchange.protocol import RpcMethod


__all__ = [
    "AccountStatusResponse",
    "ConnectionLostError",
    "ConnectionState",
    "CorrelationTable",
    "ExchangeAPIError",
    "ExchangeGateway",
    "GatewayError",
    "NotConnectedError",
    "OrderPlaceResponse",
    "PendingRequest",
    "PingResponse",
    "RequestFailure",
    "ResponseDecodeError",
    "ResponseEnvelope",
    "RpcMethod",
    "TickerPriceResponse",
    "TransportError",
]
