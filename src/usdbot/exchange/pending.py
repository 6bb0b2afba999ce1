"""
Correlation table for in-flight requests.

Every outbound request is recorded here under its correlation id
until the matching response arrives or the connection is lost.
Senders and the reader task all mutate the table, so every
operation takes the table lock.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Union

from usdbot.exchange.errors import GatewayError
from usdbot.exchange.models import ResponseEnvelope
from usdbot.exchange.protocol import RpcMethod


@dataclass(slots=True, frozen=True)
class RequestFailure:
    """Delivered to a sink instead of a response when a request cannot complete."""

    request_id: str
    method: RpcMethod
    error: GatewayError


RpcResult = Union[ResponseEnvelope, RequestFailure]

# Single-use continuation receiving the decoded response or a failure
ResultSink = Callable[[RpcResult], None]


@dataclass(slots=True)
class PendingRequest:
    """An outstanding call awaiting its response."""

    request_id: str
    method: RpcMethod
    sink: ResultSink
    sent_at_us: int = 0
    delivered: bool = field(default=False, repr=False)

    def deliver(self, result: RpcResult) -> None:
        """Hand the result to the sink; later deliveries are ignored."""
        if self.delivered:
            return
        self.delivered = True
        self.sink(result)

    def fail(self, error: GatewayError) -> None:
        """Deliver a failure for this request."""
        self.deliver(RequestFailure(self.request_id, self.method, error))


class DuplicateRequestIdError(KeyError):
    """A correlation id is already pending."""


class CorrelationTable:
    """
    Lock-guarded mapping of correlation id to pending request.

    Ids are never reused while pending: registering an id that is
    already present raises.
    """

    def __init__(self) -> None:
        self._entries: dict[str, PendingRequest] = {}
        self._lock = asyncio.Lock()

    async def register(self, request: PendingRequest) -> None:
        """
        Record a pending request.

        Raises:
            DuplicateRequestIdError: If the id is already pending.
        """
        async with self._lock:
            if request.request_id in self._entries:
                raise DuplicateRequestIdError(request.request_id)
            self._entries[request.request_id] = request

    async def pop(self, request_id: str) -> PendingRequest | None:
        """Remove and return the request for `request_id`, if pending."""
        async with self._lock:
            return self._entries.pop(request_id, None)

    async def discard(self, request_id: str) -> None:
        """Forget a request without delivering anything."""
        async with self._lock:
            self._entries.pop(request_id, None)

    async def drain(self) -> list[PendingRequest]:
        """Remove and return every pending request."""
        async with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
            return entries

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
