"""
Pydantic models for Binance WebSocket API responses.

Every response shares the envelope fields; each RPC method adds its
own `result` shape. `result` is optional because error envelopes
carry none.
"""

from typing import Any

from pydantic import BaseModel, Field

from usdbot.core.types import Quote


class ApiError(BaseModel):
    """Error body of a failed request."""

    code: int
    msg: str = ""


class RateLimitUsage(BaseModel):
    """Rate limit usage reported with every response."""

    rate_limit_type: str = Field(alias="rateLimitType")
    interval: str
    interval_num: int = Field(alias="intervalNum")
    limit: int
    count: int = 0

    model_config = {"populate_by_name": True}

    @property
    def key(self) -> str:
        """Stable name for this limit window, e.g. REQUEST_WEIGHT:1MINUTE."""
        return f"{self.rate_limit_type}:{self.interval_num}{self.interval}"

    @property
    def usage_ratio(self) -> float:
        """Share of the limit already consumed."""
        return self.count / self.limit if self.limit > 0 else 0.0


class ResponseEnvelope(BaseModel):
    """Fields common to every response frame."""

    id: str | None = None
    status: int = 0
    error: ApiError | None = None
    rate_limits: list[RateLimitUsage] = Field(default_factory=list, alias="rateLimits")

    model_config = {"populate_by_name": True}

    @property
    def ok(self) -> bool:
        """Check if the exchange accepted the request."""
        return self.error is None and 200 <= self.status < 300

    def describe_error(self) -> str:
        """One-line description of a failed response."""
        if self.error is not None:
            return f"API error {self.error.code}: {self.error.msg}"
        return f"HTTP status {self.status}"


class PingResponse(ResponseEnvelope):
    """Response to `ping`."""

    result: dict[str, Any] | None = None


class AccountBalance(BaseModel):
    """Balance entry for a single asset."""

    asset: str
    free: str
    locked: str = "0"


class AccountStatusResult(BaseModel):
    """Account information returned by `account.status`."""

    can_trade: bool = Field(default=True, alias="canTrade")
    balances: list[AccountBalance] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class AccountStatusResponse(ResponseEnvelope):
    """Response to `account.status`."""

    result: AccountStatusResult | None = None

    @property
    def balances(self) -> list[AccountBalance]:
        return self.result.balances if self.result else []


class TickerPrice(BaseModel):
    """Latest price for one symbol."""

    symbol: str
    price: str


class TickerPriceResponse(ResponseEnvelope):
    """Response to `ticker.price` with a symbols list."""

    result: list[TickerPrice] | None = None

    def quotes(self) -> list[Quote]:
        """Convert the result into quotes for evaluation."""
        return [Quote(symbol=t.symbol, price=t.price) for t in self.result or []]


class OrderFill(BaseModel):
    """Single fill in an order response."""

    price: str
    qty: str
    commission: str = "0"
    commission_asset: str = Field(default="", alias="commissionAsset")

    model_config = {"populate_by_name": True}


class OrderPlaceResult(BaseModel):
    """Order placement acknowledgement."""

    symbol: str = ""
    order_id: int | None = Field(default=None, alias="orderId")
    client_order_id: str = Field(default="", alias="clientOrderId")
    price: str = "0"
    orig_qty: str = Field(default="0", alias="origQty")
    executed_qty: str = Field(default="0", alias="executedQty")
    cummulative_quote_qty: str = Field(default="0", alias="cummulativeQuoteQty")
    status: str = ""
    type: str = ""
    side: str = ""
    fills: list[OrderFill] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @property
    def executed_qty_float(self) -> float:
        return float(self.executed_qty)

    @property
    def avg_fill_price(self) -> float:
        """Average achieved price, from fills when present."""
        if self.fills:
            total_qty = sum(float(f.qty) for f in self.fills)
            if total_qty == 0:
                return 0.0
            return sum(float(f.price) * float(f.qty) for f in self.fills) / total_qty

        executed = self.executed_qty_float
        if executed > 0:
            return float(self.cummulative_quote_qty) / executed
        return float(self.price)


class OrderPlaceResponse(ResponseEnvelope):
    """Response to `order.place`."""

    result: OrderPlaceResult | None = None
