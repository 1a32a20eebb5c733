"""
Per-connection protocol state.
"""

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from wsman.api.digest import DigestAuthenticator
from wsman.config import WsmanConfig
from wsman.message.envelope import Body, Envelope, EnvelopeBuilder, Selector
from wsman.message.namespaces import Action


@dataclass(frozen=True, slots=True)
class TlsPolicy:
    """TLS settings fixed for the lifetime of a session."""

    use_tls: bool
    verify: bool


class Session:
    """
    State shared by every request sent to one endpoint.

    Owns the message identifier counter and, in digest mode, the
    DigestAuthenticator holding the current challenge. Identifiers start at
    0 and grow by exactly one per envelope built; an envelope that fails to
    build does not consume one.

    Sessions are created explicitly by the caller and passed to every call.
    """

    def __init__(
        self,
        config: WsmanConfig,
        *,
        authenticator: DigestAuthenticator | None = None,
    ) -> None:
        """
        Args:
            config: Endpoint and credential settings.
            authenticator: Digest authenticator to use instead of a fresh one.
        """
        self._config = config
        self._builder = EnvelopeBuilder(to=config.path, operation_timeout=config.operation_timeout)
        self._tls_policy = TlsPolicy(
            use_tls=config.use_tls,
            verify=not config.self_signed_allowed,
        )

        if authenticator is None and config.use_digest and config.has_credentials:
            authenticator = DigestAuthenticator(config.username, config.password)
        self._authenticator = authenticator

        self._next_message_id = 0
        self._lock = threading.Lock()

    @property
    def config(self) -> WsmanConfig:
        return self._config

    @property
    def endpoint(self) -> str:
        return self._config.endpoint

    @property
    def tls_policy(self) -> TlsPolicy:
        return self._tls_policy

    @property
    def authenticator(self) -> DigestAuthenticator | None:
        """Digest authenticator, or None when digest mode is off."""
        return self._authenticator

    @property
    def basic_credentials(self) -> tuple[str, str] | None:
        """Credentials to send as a static Basic header, if that mode applies."""
        if self._authenticator is not None or not self._config.has_credentials:
            return None
        return self._config.username, self._config.password

    @property
    def next_message_id(self) -> int:
        """Identifier the next envelope will carry."""
        return self._next_message_id

    def build_envelope(
        self,
        resource_uri: str,
        action: Action | str,
        *,
        selectors: Mapping[str, str] | Iterable[Selector | tuple[str, str]] | None = None,
        body: Body | None = None,
        require_selectors: bool = False,
    ) -> Envelope:
        """
        Build an envelope stamped with this session's next message identifier.

        Raises:
            EncodingError: If the input is incomplete for the chosen action.
        """
        with self._lock:
            envelope = self._builder.build(
                resource_uri,
                action,
                message_id=self._next_message_id,
                selectors=selectors,
                body=body,
                require_selectors=require_selectors,
            )
            self._next_message_id += 1
        return envelope
