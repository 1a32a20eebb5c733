"""
WS-Management exception hierarchy.

All exceptions inherit from WsmanError for easy catching.
"""

from typing import Any


class WsmanError(Exception):
    """Base exception for all wsman errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class EncodingError(WsmanError):
    """Envelope could not be built from the given input."""


class TransportError(WsmanError):
    """Network-level error (connection refused, TLS failure, broken read)."""


class RequestTimeoutError(TransportError):
    """The request did not complete before its deadline."""

    def __init__(self, message: str = "Request timed out", *, deadline: float | None = None) -> None:
        super().__init__(message, deadline=deadline)
        self.deadline = deadline


class AuthenticationError(WsmanError):
    """Authentication with the endpoint failed."""


class AuthParseError(AuthenticationError):
    """Server sent a challenge that cannot be used."""

    def __init__(self, message: str, *, header: str | None = None) -> None:
        super().__init__(message, header=header)
        self.header = header


class ProtocolError(WsmanError):
    """Endpoint answered with an error status or an unexpected document."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        body: str | None = None,
        fault: str | None = None,
    ) -> None:
        context: dict[str, Any] = {"status": status}
        if fault is not None:
            context["fault"] = fault
        super().__init__(message, **context)
        self.status = status
        self.body = body
        self.fault = fault


class StateError(WsmanError):
    """Operation is not valid in the current enumeration state."""

    def __init__(self, message: str, *, state: str | None = None) -> None:
        super().__init__(message, state=state)
        self.state = state
