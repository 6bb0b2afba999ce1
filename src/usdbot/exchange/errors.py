"""Exceptions raised and delivered by the exchange gateway."""


class GatewayError(Exception):
    """Base exception for gateway errors."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class NotConnectedError(GatewayError):
    """No live socket to write to."""


class TransportError(GatewayError):
    """Writing a frame to the socket failed."""


class RequestEncodeError(GatewayError):
    """Request params could not be serialized."""


class ConnectionLostError(GatewayError):
    """The socket went away while the request was pending."""


class ResponseDecodeError(GatewayError):
    """A matched frame did not fit the method's response shape."""


class ExchangeAPIError(GatewayError):
    """The exchange answered with an error envelope."""


class RequestTimeoutError(GatewayError):
    """No response arrived within the request timeout."""
