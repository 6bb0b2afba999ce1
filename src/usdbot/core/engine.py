"""
Conversion bot orchestrator.

Owns the trading state and is the single consumer of decoded gateway
messages. Every balance update and every evaluation happens on the
consumer task, one message at a time, and each handled message
decides when the next request goes out.
"""

import asyncio
import logging
import signal

from usdbot.config.constants import BALANCE_REFRESH_INTERVAL, INBOUND_QUEUE_SIZE
from usdbot.config.settings import Settings
from usdbot.core.cycle import Transition, TradingCycle
from usdbot.core.types import OrderIntent, OrderSide
from usdbot.exchange.errors import GatewayError
from usdbot.exchange.gateway import ExchangeGateway
from usdbot.exchange.models import (
    AccountStatusResponse,
    OrderPlaceResponse,
    ResponseEnvelope,
    TickerPriceResponse,
)
from usdbot.exchange.pending import RequestFailure, RpcResult
from usdbot.exchange.protocol import METHODS, RpcMethod, new_request_id
from usdbot.execution.risk import TradingGuard
from usdbot.strategy.context import TradingContext
from usdbot.strategy.decision import DecisionEngine
from usdbot.telemetry.logger import AsyncLogger, setup_logging
from usdbot.telemetry.metrics import MetricsCollector
from usdbot.utils.time import Clock, SystemClock


logger = logging.getLogger(__name__)


class ConversionBot:
    """
    Main orchestrator.

    Manages:
    - Exchange connectivity through the gateway
    - The balance / price request cycle
    - Conversion decisions and order placement
    - The balance watchdog
    - Shutdown and the metrics summary
    """

    def __init__(
        self,
        settings: Settings,
        *,
        gateway: ExchangeGateway | None = None,
        context: TradingContext | None = None,
        clock: Clock | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize the bot.

        Args:
            settings: Application settings.
            gateway: Exchange gateway; built from settings if omitted.
            context: Trading context; built from settings if omitted.
            clock: Clock driving cycle delays.
            metrics: Metrics collector.
        """
        self._settings = settings
        self._clock = clock or SystemClock()
        self._metrics = metrics or MetricsCollector()
        self._context = context or TradingContext.from_settings(settings)
        self._gateway = gateway or ExchangeGateway(
            settings.endpoint,
            settings.binance_api_key.get_secret_value(),
            settings.binance_api_secret.get_secret_value(),
            clock=self._clock,
            metrics=self._metrics,
            request_timeout=settings.request_timeout,
        )

        self._decision = DecisionEngine(self._context)
        self._cycle = TradingCycle()
        self._guard = TradingGuard(settings.auth_failure_limit)

        self._inbound: asyncio.Queue[RpcResult] = asyncio.Queue(maxsize=INBOUND_QUEUE_SIZE)
        self._tasks: list[asyncio.Task[None]] = []
        self._next_step: asyncio.Task[None] | None = None
        self._awaiting: str | None = None
        self._awaiting_since = 0.0
        self._last_balance_update: float | None = None
        self._last_intent: OrderIntent | None = None
        self._running = False
        self._shutdown_event = asyncio.Event()
        self._async_logger: AsyncLogger | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self) -> None:
        """
        Connect and start the background tasks.

        Blocks until the gateway is connected, then returns once the
        consumer and the watchdog are running and the first balance
        request has been sent.
        """
        symbols = self._context.symbols
        logger.info(
            f"Tracking {len(self._context.balances)} assets across {len(symbols)} symbols: "
            f"{', '.join(symbols) or '-'}"
        )

        await self._gateway.connect()

        try:
            await self._gateway.ping()
        except GatewayError as e:
            logger.warning(f"Ping failed: {e}")

        self._running = True
        self._tasks = [
            asyncio.create_task(self._consume(), name="usdbot-consumer"),
            asyncio.create_task(self._watch_balances(), name="usdbot-balance-watchdog"),
        ]

        if not symbols:
            logger.warning("No valid trading pairs configured; the cycle will not start")
            return

        await self._send_request(RpcMethod.ACCOUNT_STATUS)

    async def run(self) -> None:
        """Run until SIGINT or SIGTERM."""
        self._async_logger = setup_logging(
            level=self._settings.log_level,
            log_file=self._settings.log_file,
            secrets=(
                self._settings.binance_api_key.get_secret_value(),
                self._settings.binance_api_secret.get_secret_value(),
            ),
        )

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_shutdown)

        initializing = asyncio.create_task(self.initialize())
        stopping = asyncio.create_task(self._shutdown_event.wait())

        try:
            await asyncio.wait({initializing, stopping}, return_when=asyncio.FIRST_COMPLETED)

            if initializing.done():
                initializing.result()
                logger.info("Bot running; waiting for shutdown signal")
                await self._shutdown_event.wait()
            else:
                initializing.cancel()
                await asyncio.gather(initializing, return_exceptions=True)

        finally:
            stopping.cancel()
            await self.shutdown()

    def _handle_shutdown(self) -> None:
        """Handle shutdown signal."""
        logger.info("Shutdown signal received")
        self._shutdown_event.set()

    async def shutdown(self) -> None:
        """Stop background tasks and close the gateway."""
        logger.info("Shutting down...")
        self._running = False

        tasks = list(self._tasks)
        if self._next_step is not None:
            tasks.append(self._next_step)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._next_step = None

        await self._gateway.close()

        for line in self._metrics.summary():
            logger.info(f"Metrics: {line}")

        if self._async_logger:
            self._async_logger.stop()
            self._async_logger = None

    # =========================================================================
    # Requests & Scheduling
    # =========================================================================

    def _enqueue(self, result: RpcResult) -> None:
        """Result sink for every request: post onto the inbound queue."""
        try:
            self._inbound.put_nowait(result)
        except asyncio.QueueFull:
            self._metrics.increment_counter("inbound_overflow")
            logger.error(f"Inbound queue full; dropping {type(result).__name__}")

    async def _send_request(self, method: RpcMethod) -> bool:
        """
        Send the request that drives the next cycle step.

        Its id becomes the one response the cycle accepts; it is
        recorded before the write so even an immediate reply matches.
        """
        request_id = new_request_id()
        self._awaiting = request_id
        self._awaiting_since = self._clock.monotonic()

        try:
            if method == RpcMethod.ACCOUNT_STATUS:
                await self._gateway.send_account_status(self._enqueue, request_id)
            elif method == RpcMethod.TICKER_PRICE:
                await self._gateway.send_ticker_price(
                    self._context.symbols, self._enqueue, request_id
                )
            else:
                raise ValueError(f"Cycle cannot send {method.value}")

        except GatewayError as e:
            self._awaiting = None
            logger.warning(f"Could not send {method.value}: {e}")
            self._schedule(self._cycle.on_failure())
            return False

        return True

    def _claim(self, method: RpcMethod, request_id: str | None) -> bool:
        """Accept a result only if it answers the request the cycle waits on."""
        if request_id is None or request_id != self._awaiting or method != self._cycle.awaiting:
            self._metrics.increment_counter("responses_discarded")
            logger.debug(
                f"Discarding {method.value} {request_id}: cycle awaits "
                f"{self._cycle.awaiting.value} {self._awaiting}"
            )
            return False

        self._awaiting = None
        return True

    def _schedule(self, transition: Transition) -> None:
        """Replace any pending step with `transition`."""
        current = asyncio.current_task()
        if self._next_step and not self._next_step.done() and self._next_step is not current:
            self._next_step.cancel()

        logger.debug(
            f"Cycle -> {transition.state.name}: {transition.request.value} "
            f"in {transition.delay:.0f}s"
        )
        self._next_step = asyncio.create_task(self._run_step(transition))

    async def _run_step(self, transition: Transition) -> None:
        if transition.delay > 0:
            await self._clock.sleep(transition.delay)
        if self._running:
            await self._send_request(transition.request)

    def _is_stalled(self, now: float) -> bool:
        """True if no step is scheduled and no request is answered in time."""
        if self._next_step is not None and not self._next_step.done():
            return False
        if self._awaiting is not None:
            return now - self._awaiting_since > BALANCE_REFRESH_INTERVAL
        return True

    async def _watch_balances(self) -> None:
        """
        Restart a stalled cycle once balances have gone stale.

        The refresh goes through the cycle itself, so an answer to the
        abandoned request is discarded and only one chain ever runs.
        """
        while True:
            await self._clock.sleep(BALANCE_REFRESH_INTERVAL)

            now = self._clock.monotonic()
            last = self._last_balance_update
            if last is not None and now - last <= BALANCE_REFRESH_INTERVAL:
                continue
            if not self._context.symbols or not self._is_stalled(now):
                continue

            logger.info("Balances are stale and the cycle has stalled; requesting refresh")
            self._schedule(self._cycle.on_stalled())

    # =========================================================================
    # Message Handling
    # =========================================================================

    async def _consume(self) -> None:
        """Drain the inbound queue, one message at a time."""
        while True:
            message = await self._inbound.get()
            try:
                await self.handle_message(message)
            except Exception as e:
                logger.exception(f"Error handling {type(message).__name__}: {e}")
            finally:
                self._inbound.task_done()

    async def handle_message(self, message: RpcResult) -> None:
        """Dispatch one decoded message by kind."""
        if isinstance(message, RequestFailure):
            self._on_request_failure(message)
        elif isinstance(message, AccountStatusResponse):
            self._on_account_status(message)
        elif isinstance(message, TickerPriceResponse):
            await self._on_prices(message)
        elif isinstance(message, OrderPlaceResponse):
            self._on_order_ack(message)
        else:
            logger.debug(f"Ignoring {type(message).__name__}")

    def _on_request_failure(self, failure: RequestFailure) -> None:
        logger.warning(f"{failure.method.value} {failure.request_id} failed: {failure.error}")

        if failure.method == RpcMethod.ORDER_PLACE:
            # The balance refresh after the cooldown is already scheduled
            logger.error(f"Outcome of order {self._last_intent} is unknown")
            return

        if not self._claim(failure.method, failure.request_id):
            return

        self._schedule(self._cycle.on_failure())

    def _on_api_error(self, method: RpcMethod, response: ResponseEnvelope) -> None:
        logger.warning(f"{method.value} rejected: {response.describe_error()}")
        if METHODS[method].is_signed:
            code = response.error.code if response.error else None
            self._guard.record_failure(code, method.value)

    def _on_account_status(self, response: AccountStatusResponse) -> None:
        if not self._claim(RpcMethod.ACCOUNT_STATUS, response.id):
            return

        if not response.ok:
            self._on_api_error(RpcMethod.ACCOUNT_STATUS, response)
            self._schedule(self._cycle.on_failure())
            return

        self._guard.record_success()

        try:
            self._context.balances.update(response.balances)
        except ValueError as e:
            logger.warning(f"Balance update rejected: {e}")
            # Retry the balances rather than evaluate prices against a stale book
            self._schedule(self._cycle.on_failure())
            return

        self._last_balance_update = self._clock.monotonic()
        logger.info(f"Balances updated: {self._context.balances}")
        self._schedule(self._cycle.on_balances())

    async def _on_prices(self, response: TickerPriceResponse) -> None:
        if not self._claim(RpcMethod.TICKER_PRICE, response.id):
            return

        if not response.ok:
            self._on_api_error(RpcMethod.TICKER_PRICE, response)
            self._schedule(self._cycle.on_failure())
            return

        quotes = response.quotes()
        logger.debug(f"Prices: {', '.join(f'{q.symbol}={q.price}' for q in quotes)}")
        self._metrics.increment_counter("evaluations")

        intent = self._decision.evaluate(quotes)
        placed = await self._place_order(intent) if intent is not None else False

        self._schedule(self._cycle.on_prices(placed))

    async def _place_order(self, intent: OrderIntent) -> bool:
        """Send `intent`; True if an order actually went out."""
        if not self._guard.is_trading_allowed:
            logger.warning(f"Trading halted ({self._guard.state.halt_reason}); skipping {intent}")
            return False

        if self._settings.dry_run:
            logger.info(f"[DRY RUN] Would place {intent}")
            return False

        try:
            await self._gateway.send_order_place(intent, self._enqueue)
        except GatewayError as e:
            logger.error(f"Failed to place {intent}: {e}")
            return False

        self._last_intent = intent
        self._metrics.increment_counter("orders_placed")
        logger.info(f"Order sent: {intent}")
        return True

    def _on_order_ack(self, response: OrderPlaceResponse) -> None:
        intent = self._last_intent

        if not response.ok:
            self._on_api_error(RpcMethod.ORDER_PLACE, response)
            logger.error(f"Order {intent} rejected")
            return

        self._guard.record_success()
        self._metrics.increment_counter("orders_acknowledged")

        result = response.result
        if result is None:
            logger.info(f"Order acknowledged for {intent}")
            return

        avg_price = result.avg_fill_price
        message = (
            f"Order {result.order_id} {result.status}: {result.side} {result.symbol} "
            f"executed={result.executed_qty} avg_price={avg_price:.8f}"
        )

        if intent is not None and intent.symbol == result.symbol and avg_price > 0:
            achieved = avg_price if intent.side == OrderSide.SELL else 1.0 / avg_price
            message += f" achieved={achieved:.6f} expected={intent.price:.6f}"

        logger.info(message)

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def context(self) -> TradingContext:
        return self._context

    @property
    def cycle(self) -> TradingCycle:
        return self._cycle

    @property
    def guard(self) -> TradingGuard:
        return self._guard

    @property
    def metrics(self) -> MetricsCollector:
        """Get metrics collector."""
        return self._metrics

    @property
    def is_running(self) -> bool:
        """Check if the bot is running."""
        return self._running
