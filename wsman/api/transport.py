"""
Async HTTP transport for WS-Management envelopes.

Sends one envelope per call, negotiates Digest authentication with a single
bounded retry, and translates HTTP-level failures into wsman exceptions.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from wsman.exceptions import (
    AuthenticationError,
    ProtocolError,
    RequestTimeoutError,
    TransportError,
)
from wsman.message.envelope import Envelope
from wsman.message.namespaces import CONTENT_TYPE
from wsman.message.response import fault_reason

if TYPE_CHECKING:
    from wsman.session import Session, TlsPolicy

logger = structlog.get_logger(__name__)

SENSITIVE_HEADERS = frozenset({"authorization", "proxy-authorization", "cookie"})


def sanitize_headers(headers: Mapping[str, Any]) -> dict[str, Any]:
    """
    Mask credential-bearing headers before logging.

    Args:
        headers: Request or response headers.

    Returns:
        Copy with sensitive values replaced by "***".
    """
    return {
        key: "***" if key.lower() in SENSITIVE_HEADERS else value for key, value in headers.items()
    }


class AuthState(StrEnum):
    """Progress of one exchange through Digest negotiation."""

    UNAUTHENTICATED = "unauthenticated"
    CHALLENGED = "challenged"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass(frozen=True, kw_only=True)
class RequestResult:
    """Fully read response of one successful exchange."""

    message_id: int
    status_code: int
    content: bytes
    headers: httpx.Headers = field(default_factory=httpx.Headers, compare=False)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class AsyncTransport:
    """
    Executes envelopes against WS-Management endpoints.

    Keeps one pooled httpx client per TLS policy so connections are reused
    across calls while each session keeps the trust settings it was created
    with.
    """

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """
        Args:
            transport: Optional transport for testing (mock transport).
        """
        self._transport = transport
        self._clients: dict["TlsPolicy", httpx.AsyncClient] = {}
        self._client_lock = asyncio.Lock()

    async def __aenter__(self) -> "AsyncTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_client(self, policy: "TlsPolicy") -> httpx.AsyncClient:
        async with self._client_lock:
            client = self._clients.get(policy)
            if client is None:
                client = httpx.AsyncClient(
                    verify=policy.verify,
                    transport=self._transport,
                    headers={"Content-Type": CONTENT_TYPE},
                )
                self._clients[policy] = client
                logger.debug("HTTP client opened", tls=policy.use_tls, verify=policy.verify)
        return client

    async def close(self) -> None:
        """Close every pooled client. Safe to call more than once."""
        async with self._client_lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            await client.aclose()

    async def execute(
        self,
        envelope: Envelope,
        session: "Session",
        *,
        deadline: float | None = None,
    ) -> RequestResult:
        """
        Send an envelope and return the fully read response.

        Args:
            envelope: Envelope built by ``session``.
            session: Session holding endpoint, TLS policy and credentials.
            deadline: Budget in seconds for the whole exchange, auth retry
                included. Defaults to the session's configured deadline.

        Returns:
            The response of the final attempt.

        Raises:
            RequestTimeoutError: If the deadline or an HTTP timeout expires.
            TransportError: If the connection, TLS handshake or body read fails.
            AuthenticationError: If the endpoint rejects the retried request or
                sends an unusable challenge.
            ProtocolError: If the final status is 400 or above.
        """
        if deadline is None:
            deadline = session.config.deadline
        log = logger.bind(message_id=envelope.message_id, action=envelope.action)

        try:
            async with asyncio.timeout(deadline):
                result = await self._exchange(envelope, session, log)
        except TimeoutError as e:
            log.warning("Request deadline exceeded", deadline=deadline)
            msg = "Request deadline exceeded"
            raise RequestTimeoutError(msg, deadline=deadline) from e

        log.debug("Envelope executed", status=result.status_code)
        return result

    async def _exchange(
        self,
        envelope: Envelope,
        session: "Session",
        log: Any,
    ) -> RequestResult:
        client = await self._ensure_client(session.tls_policy)
        authenticator = session.authenticator
        digest_uri = httpx.URL(session.endpoint).path

        state = AuthState.UNAUTHENTICATED
        headers = self._headers(session, digest_uri)
        response = await self._post(client, session, envelope, headers, log)

        if authenticator is not None and response.status_code == httpx.codes.UNAUTHORIZED:
            state = AuthState.CHALLENGED
            log.debug("Digest challenge received")
            authenticator.on_challenge(response.headers.get("WWW-Authenticate"))

            headers = self._headers(session, digest_uri)
            response = await self._post(client, session, envelope, headers, log)
            if response.status_code == httpx.codes.UNAUTHORIZED:
                state = AuthState.FAILED
                log.warning("Digest authentication rejected", state=state)
                msg = "Endpoint rejected digest credentials"
                raise AuthenticationError(msg, status=response.status_code)

        if authenticator is not None:
            state = AuthState.AUTHENTICATED

        if response.status_code >= httpx.codes.BAD_REQUEST:
            msg = f"Endpoint returned HTTP {response.status_code}"
            raise ProtocolError(
                msg,
                status=response.status_code,
                body=response.text,
                fault=fault_reason(response.content),
            )

        log.debug("Response received", status=response.status_code, auth_state=state)
        return RequestResult(
            message_id=envelope.message_id,
            status_code=response.status_code,
            content=response.content,
            headers=response.headers,
        )

    @staticmethod
    def _headers(session: "Session", digest_uri: str) -> dict[str, str]:
        headers = {"User-Agent": session.config.user_agent}
        if session.authenticator is not None:
            headers["Authorization"] = session.authenticator.authorize("POST", digest_uri)
        return headers

    @staticmethod
    async def _post(
        client: httpx.AsyncClient,
        session: "Session",
        envelope: Envelope,
        headers: dict[str, str],
        log: Any,
    ) -> httpx.Response:
        credentials = session.basic_credentials
        auth = httpx.BasicAuth(*credentials) if credentials is not None else None
        log.debug("Sending envelope", headers=sanitize_headers(headers), basic=auth is not None)

        try:
            return await client.post(
                session.endpoint,
                content=envelope.document,
                headers=headers,
                auth=auth,
                timeout=session.config.timeout,
            )
        except httpx.TimeoutException as e:
            msg = "HTTP request timed out"
            raise RequestTimeoutError(msg, deadline=session.config.timeout) from e
        except httpx.HTTPError as e:
            msg = f"HTTP request failed: {type(e).__name__}"
            raise TransportError(msg, endpoint=session.endpoint) from e
