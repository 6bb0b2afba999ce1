"""
Trading constants and configuration values.

This module contains all hardcoded values used throughout the conversion bot.
Values are organized by category for easy maintenance and auditing.
"""

from typing import Final


# =============================================================================
# Binance WebSocket API Endpoints
# =============================================================================

BINANCE_WS_API_URL: Final[str] = "wss://ws-api.binance.com:443/ws-api/v3"
BINANCE_WS_API_TESTNET_URL: Final[str] = "wss://ws-api.testnet.binance.vision/ws-api/v3"


# =============================================================================
# RPC Methods
# =============================================================================

METHOD_PING: Final[str] = "ping"
METHOD_ACCOUNT_STATUS: Final[str] = "account.status"
METHOD_TICKER_PRICE: Final[str] = "ticker.price"
METHOD_ORDER_PLACE: Final[str] = "order.place"


# =============================================================================
# Reconnection Strategy
# =============================================================================

# Fixed delay between connection attempts; attempts are unbounded
RECONNECT_DELAY: Final[float] = 3.0  # seconds


# =============================================================================
# WebSocket Configuration
# =============================================================================

WS_PING_INTERVAL: Final[float] = 20.0  # seconds
WS_MAX_MESSAGE_SIZE: Final[int] = 10 * 1024 * 1024  # 10MB
WS_CLOSE_TIMEOUT: Final[float] = 5.0  # seconds

# Inbound decoded-message queue between the reader and the consumer
INBOUND_QUEUE_SIZE: Final[int] = 1024


# =============================================================================
# Trading Cycle Cadence
# =============================================================================

# Wait after placing an order before refreshing balances
ORDER_COOLDOWN: Final[float] = 60.0  # seconds

# Wait between price polls when no order was placed
PRICE_POLL_INTERVAL: Final[float] = 10.0  # seconds

# Wait before restarting the cycle after a failed step
FAILURE_RETRY_DELAY: Final[float] = 3.0  # seconds

# Balance watchdog period and staleness limit
BALANCE_REFRESH_INTERVAL: Final[float] = 60.0  # seconds


# =============================================================================
# Order Configuration
# =============================================================================

ORDER_TYPE_MARKET: Final[str] = "MARKET"

SIDE_BUY: Final[str] = "BUY"
SIDE_SELL: Final[str] = "SELL"


# =============================================================================
# Trading Constraints
# =============================================================================

# Round-trip fee/slippage margin; a conversion must strictly exceed it
PROFIT_THRESHOLD: Final[float] = 1.0005

DEFAULT_VOLUME_PER_TRANSACTION: Final[int] = 10
DEFAULT_VOLUME_MAXIMUM: Final[int] = 1000

DEFAULT_SYMBOLS: Final[tuple[str, ...]] = (
    "USDC/USDT",
    "FDUSD/USDT",
    "TUSD/USDT",
)


# =============================================================================
# Rate Limits & Errors
# =============================================================================

# Warn once reported usage crosses this share of a limit
RATE_LIMIT_WARN_RATIO: Final[float] = 0.80

# Binance error codes that indicate bad credentials or signatures
AUTH_ERROR_CODES: Final[frozenset[int]] = frozenset(
    {
        -1022,  # Signature for this request is not valid
        -2014,  # API-key format invalid
        -2015,  # Invalid API-key, IP, or permissions for action
    }
)

DEFAULT_AUTH_FAILURE_LIMIT: Final[int] = 5
DEFAULT_REQUEST_TIMEOUT_MS: Final[int] = 10_000


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000

# Number of round-trip samples kept per RPC method
LATENCY_WINDOW_SIZE: Final[int] = 1000
