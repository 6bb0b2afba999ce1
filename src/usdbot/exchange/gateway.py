"""
Persistent WebSocket RPC client for the Binance WebSocket API.

Multiplexes concurrent requests over one connection with:
- Correlation ids linking each response to its caller
- A lock-guarded table of pending requests
- Method-keyed response decoding
- Unbounded reconnection with a fixed delay
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum, auto
from typing import Any, Protocol

import aiohttp
import orjson
from pydantic import ValidationError

from usdbot.config.constants import (
    DEFAULT_REQUEST_TIMEOUT_MS,
    RATE_LIMIT_WARN_RATIO,
    RECONNECT_DELAY,
    WS_CLOSE_TIMEOUT,
    WS_MAX_MESSAGE_SIZE,
    WS_PING_INTERVAL,
)
from usdbot.core.types import OrderIntent
from usdbot.exchange.errors import (
    ConnectionLostError,
    ExchangeAPIError,
    NotConnectedError,
    RequestEncodeError,
    RequestTimeoutError,
    ResponseDecodeError,
    TransportError,
)
from usdbot.exchange.models import ResponseEnvelope
from usdbot.exchange.pending import (
    CorrelationTable,
    PendingRequest,
    RequestFailure,
    ResultSink,
    RpcResult,
)
from usdbot.exchange.protocol import (
    RpcMethod,
    account_status_params,
    build_request,
    new_request_id,
    order_place_params,
    response_model_for,
    ticker_price_params,
)
from usdbot.execution.signer import RequestSigner
from usdbot.telemetry.metrics import MetricsCollector
from usdbot.utils.time import Clock, SystemClock, get_timestamp_ms, get_timestamp_us


logger = logging.getLogger(__name__)


class WebSocketLike(Protocol):
    """The subset of aiohttp.ClientWebSocketResponse the gateway uses."""

    @property
    def closed(self) -> bool: ...

    async def send_str(self, data: str) -> None: ...

    async def receive(self) -> aiohttp.WSMessage: ...

    async def close(self) -> bool: ...


# Opens a socket to the given URL
SocketFactory = Callable[[str], Awaitable[WebSocketLike]]


class ConnectionState(Enum):
    """Gateway connection state."""

    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    CLOSED = auto()


class ExchangeGateway:
    """
    Duplex RPC client over a single WebSocket.

    Any task may send; one reader task per connection decodes frames
    and hands each result to the sink registered with its request.
    When the socket drops, every pending request receives a
    ConnectionLostError and the gateway reconnects.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        api_secret: str,
        *,
        clock: Clock | None = None,
        metrics: MetricsCollector | None = None,
        socket_factory: SocketFactory | None = None,
        reconnect_delay: float = RECONNECT_DELAY,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT_MS / 1000,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            url: WebSocket API endpoint.
            api_key: Binance API key.
            api_secret: Binance API secret.
            clock: Clock used for reconnect delays.
            metrics: Metrics collector.
            socket_factory: Opens sockets; defaults to an aiohttp session.
            reconnect_delay: Seconds between failed connection attempts.
            request_timeout: Default timeout for `request()` in seconds.
        """
        self._url = url
        self._api_key = api_key
        self._signer = RequestSigner(api_secret)
        self._clock = clock or SystemClock()
        self._metrics = metrics or MetricsCollector()
        self._socket_factory = socket_factory
        self._reconnect_delay = reconnect_delay
        self._request_timeout = request_timeout

        self._pending = CorrelationTable()
        self._send_lock = asyncio.Lock()
        self._ws: WebSocketLike | None = None
        self._session: aiohttp.ClientSession | None = None
        self._state = ConnectionState.DISCONNECTED
        self._running = False
        self._reader_task: asyncio.Task[None] | None = None
        self._connection_count = 0

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def pending_count(self) -> int:
        """Number of requests awaiting a response."""
        return len(self._pending)

    @property
    def connection_count(self) -> int:
        """Number of successful connections so far."""
        return self._connection_count

    # =========================================================================
    # Connection Lifecycle
    # =========================================================================

    async def _open_socket(self) -> WebSocketLike:
        """Open a socket with the configured factory or aiohttp."""
        if self._socket_factory is not None:
            return await self._socket_factory(self._url)

        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()

        return await self._session.ws_connect(
            self._url,
            heartbeat=WS_PING_INTERVAL,
            max_msg_size=WS_MAX_MESSAGE_SIZE,
        )

    async def connect(self) -> None:
        """
        Connect, retrying until it succeeds.

        There is no attempt limit: against an unreachable endpoint this
        blocks until `close()` is called.
        """
        self._running = True
        await self._connect_loop()

    async def _connect_loop(self) -> None:
        attempt = 0

        while self._running:
            attempt += 1
            self._state = ConnectionState.CONNECTING

            try:
                ws = await self._open_socket()
            except Exception as e:
                self._state = ConnectionState.DISCONNECTED
                logger.error(
                    f"Connection attempt {attempt} failed: {e}; "
                    f"retrying in {self._reconnect_delay:.0f}s"
                )
                await self._clock.sleep(self._reconnect_delay)
                continue

            if not self._running:
                await self._close_socket(ws)
                return

            self._ws = ws
            self._state = ConnectionState.CONNECTED
            self._connection_count += 1
            self._reader_task = asyncio.create_task(self._read_loop(ws))
            logger.info(f"Connected to {self._url} (connection #{self._connection_count})")
            return

    async def close(self) -> None:
        """Stop reconnecting, close the socket and fail pending requests."""
        self._running = False
        self._state = ConnectionState.CLOSED

        task = self._reader_task
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await asyncio.wait_for(task, timeout=WS_CLOSE_TIMEOUT)
            except (TimeoutError, asyncio.CancelledError):
                pass
        self._reader_task = None

        if self._ws is not None:
            await self._close_socket(self._ws)
            self._ws = None

        await self._fail_pending("gateway closed")

        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

        logger.info("Gateway closed")

    async def _close_socket(self, ws: WebSocketLike) -> None:
        if ws.closed:
            return
        try:
            await ws.close()
        except Exception as e:
            logger.debug(f"Error while closing socket: {e}")

    async def _on_disconnect(self, ws: WebSocketLike) -> None:
        """Tear down a dead connection and start a fresh connect cycle."""
        if self._ws is ws:
            self._ws = None
        if self._state != ConnectionState.CLOSED:
            self._state = ConnectionState.DISCONNECTED

        await self._close_socket(ws)
        await self._fail_pending("connection lost")

        if not self._running:
            return

        self._metrics.increment_counter("reconnects")
        logger.info("Reconnecting")
        await self._connect_loop()

    async def _fail_pending(self, reason: str) -> None:
        """Deliver ConnectionLostError to every pending request."""
        pending = await self._pending.drain()
        if pending:
            logger.warning(f"Failing {len(pending)} pending request(s): {reason}")

        for request in pending:
            failure = RequestFailure(
                request.request_id,
                request.method,
                ConnectionLostError(reason),
            )
            self._deliver(request, failure)

    # =========================================================================
    # Receiving
    # =========================================================================

    async def _read_loop(self, ws: WebSocketLike) -> None:
        """Read frames until the socket fails, then reconnect."""
        try:
            while True:
                msg = await ws.receive()

                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    await self._handle_frame(msg.data)

                elif msg.type == aiohttp.WSMsgType.ERROR:
                    logger.error(f"Socket error: {msg.data}")
                    break

                elif msg.type in (
                    aiohttp.WSMsgType.CLOSE,
                    aiohttp.WSMsgType.CLOSING,
                    aiohttp.WSMsgType.CLOSED,
                ):
                    logger.warning("Connection closed by peer")
                    break

        except Exception as e:
            logger.error(f"Error in read loop: {e}")

        await self._on_disconnect(ws)

    async def _handle_frame(self, data: str | bytes) -> None:
        """Route one frame to the request that shares its id."""
        self._metrics.increment_counter("frames_received")

        try:
            payload = orjson.loads(data)
        except orjson.JSONDecodeError as e:
            self._drop_frame(f"invalid JSON: {e}")
            return

        if not isinstance(payload, dict):
            self._drop_frame("not a JSON object")
            return

        try:
            envelope = ResponseEnvelope.model_validate(payload)
        except ValidationError as e:
            self._drop_frame(f"bad envelope: {e.error_count()} error(s)")
            return

        if envelope.id is None:
            detail = envelope.describe_error() if envelope.error else "no id"
            self._drop_frame(f"uncorrelated frame ({detail})")
            return

        pending = await self._pending.pop(envelope.id)
        if pending is None:
            self._metrics.increment_counter("frames_dropped")
            logger.debug(f"Dropping frame for unknown id {envelope.id}")
            return

        self._metrics.record_latency(pending.method.value, get_timestamp_us() - pending.sent_at_us)
        self._track_rate_limits(envelope)

        try:
            response = response_model_for(pending.method).model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Undecodable {pending.method.value} response {envelope.id}: {e}")
            failure = RequestFailure(
                pending.request_id,
                pending.method,
                ResponseDecodeError(f"{pending.method.value}: {e.error_count()} error(s)"),
            )
            self._deliver(pending, failure)
            return

        if not response.ok:
            self._metrics.increment_counter("api_errors")
            logger.warning(
                f"{pending.method.value} {envelope.id} failed: {response.describe_error()}"
            )

        self._deliver(pending, response)

    def _drop_frame(self, reason: str) -> None:
        self._metrics.increment_counter("frames_dropped")
        logger.warning(f"Dropping frame: {reason}")

    def _deliver(self, request: PendingRequest, result: RpcResult) -> None:
        """Hand a result to its sink; a failing sink never stops the reader."""
        try:
            request.deliver(result)
        except Exception as e:
            logger.error(f"Result sink for {request.method.value} {request.request_id} failed: {e}")
            return

        if isinstance(result, RequestFailure):
            self._metrics.increment_counter("requests_failed")
        else:
            self._metrics.increment_counter("responses_delivered")

    def _track_rate_limits(self, envelope: ResponseEnvelope) -> None:
        for usage in envelope.rate_limits:
            ratio = usage.usage_ratio
            self._metrics.set_gauge(f"rate_limit[{usage.key}]", ratio)
            if ratio >= RATE_LIMIT_WARN_RATIO:
                logger.warning(f"Rate limit {usage.key} at {usage.count}/{usage.limit}")

    # =========================================================================
    # Sending
    # =========================================================================

    async def send(
        self,
        method: RpcMethod,
        params: dict[str, Any] | None,
        sink: ResultSink,
        request_id: str | None = None,
    ) -> str:
        """
        Send a request; its response is delivered to `sink`.

        The request is registered under the send lock right before the
        write and rolled back if the write fails, so a failed send never
        leaves a pending entry behind.

        Args:
            method: RPC method.
            params: Method params, or None for methods without params.
            sink: Receives the response or a RequestFailure.
            request_id: Correlation id to use; a fresh one if omitted.

        Returns:
            The correlation id.

        Raises:
            RequestEncodeError: If params cannot be serialized.
            NotConnectedError: If there is no live socket.
            TransportError: If the write fails.
        """
        request_id = request_id or new_request_id()

        try:
            frame = orjson.dumps(build_request(request_id, method, params)).decode()
        except TypeError as e:
            raise RequestEncodeError(f"Cannot encode {method.value} request: {e}") from e

        async with self._send_lock:
            ws = self._ws
            if ws is None or ws.closed or self._state != ConnectionState.CONNECTED:
                raise NotConnectedError(f"Cannot send {method.value}: not connected")

            await self._pending.register(
                PendingRequest(request_id, method, sink, sent_at_us=get_timestamp_us())
            )
            try:
                await ws.send_str(frame)
            except Exception as e:
                await self._pending.discard(request_id)
                raise TransportError(f"Failed to send {method.value}: {e}") from e

        self._metrics.increment_counter("requests_sent")
        logger.debug(f"-> {frame}")
        return request_id

    async def send_ping(self, sink: ResultSink) -> str:
        return await self.send(RpcMethod.PING, None, sink)

    async def send_account_status(self, sink: ResultSink, request_id: str | None = None) -> str:
        """Request balances; signed."""
        params = account_status_params(self._api_key, self._signer, get_timestamp_ms())
        return await self.send(RpcMethod.ACCOUNT_STATUS, params, sink, request_id)

    async def send_ticker_price(
        self,
        symbols: Sequence[str],
        sink: ResultSink,
        request_id: str | None = None,
    ) -> str:
        """Request last prices for `symbols`; unsigned."""
        params = ticker_price_params(symbols)
        return await self.send(RpcMethod.TICKER_PRICE, params, sink, request_id)

    async def send_order_place(self, intent: OrderIntent, sink: ResultSink) -> str:
        """Place a market order for `intent`; signed."""
        params = order_place_params(intent, self._api_key, self._signer, get_timestamp_ms())
        return await self.send(RpcMethod.ORDER_PLACE, params, sink)

    async def request(
        self,
        method: RpcMethod,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> ResponseEnvelope:
        """
        Send a request and wait for its response.

        Raises:
            RequestTimeoutError: If no response arrives in time.
            ExchangeAPIError: If the exchange rejects the request.
            GatewayError: Any send or delivery failure.
        """
        future: asyncio.Future[RpcResult] = asyncio.get_running_loop().create_future()

        def sink(result: RpcResult) -> None:
            if not future.done():
                future.set_result(result)

        request_id = await self.send(method, params, sink)

        try:
            result = await asyncio.wait_for(future, timeout or self._request_timeout)
        except TimeoutError:
            await self._pending.discard(request_id)
            raise RequestTimeoutError(f"{method.value} {request_id} timed out") from None

        if isinstance(result, RequestFailure):
            raise result.error

        if not result.ok:
            code = result.error.code if result.error else result.status
            raise ExchangeAPIError(result.describe_error(), code=code)

        return result

    async def ping(self) -> None:
        """Round-trip a `ping` request."""
        await self.request(RpcMethod.PING)

    async def __aenter__(self) -> "ExchangeGateway":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()
