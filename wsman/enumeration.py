"""
WS-Enumeration cursor.

Streams a result set through an Enumerate call followed by Pull calls, each
Pull carrying the context returned by the previous response.
"""

from collections.abc import AsyncIterator
from enum import StrEnum

import structlog

from wsman.api.transport import AsyncTransport
from wsman.exceptions import StateError
from wsman.message.envelope import EnumerateRequest, PullRequest, ReleaseRequest
from wsman.message.namespaces import Action
from wsman.message.response import (
    EnumerationPage,
    InstanceRecord,
    parse_enumerate_response,
    parse_pull_response,
)
from wsman.session import Session

logger = structlog.get_logger(__name__)


class CursorState(StrEnum):
    """Lifecycle of an enumeration sequence."""

    IDLE = "idle"
    STARTED = "started"
    PULLING = "pulling"
    DONE = "done"


class EnumerationCursor:
    """
    Single-owner cursor over one enumeration sequence.

    ``IDLE -> STARTED -> (PULLING -> STARTED)* -> DONE``

    A failed pull puts the cursor back in STARTED with the last context the
    peer handed out, so the caller may repeat the same pull. Nothing is
    retried implicitly. Not safe for concurrent use.

    Example:
        ```python
        cursor = EnumerationCursor(session, transport, resource_uri)
        async for item in cursor:
            print(item.class_name, item.properties)
        ```
    """

    def __init__(
        self,
        session: Session,
        transport: AsyncTransport,
        resource_uri: str,
        *,
        max_elements: int | None = None,
        max_characters: int | None = None,
        optimize: bool | None = None,
        deadline: float | None = None,
    ) -> None:
        """
        Args:
            session: Session the envelopes are built and sent with.
            transport: Transport executing the envelopes.
            resource_uri: Resource URI of the enumerated class.
            max_elements: Page size hint. Defaults to the session configuration.
            max_characters: Page character budget. Defaults to the session configuration.
            optimize: Request the first page with the Enumerate response.
            deadline: Per-call deadline forwarded to the transport.
        """
        config = session.config
        self._session = session
        self._transport = transport
        self._resource_uri = resource_uri
        self._max_elements = max_elements or config.max_elements
        self._max_characters = max_characters or config.max_characters
        self._optimize = config.optimize_enumeration if optimize is None else optimize
        self._deadline = deadline

        self._state = CursorState.IDLE
        self._context: str | None = None

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def context(self) -> str | None:
        """Most recent enumeration context, None unless STARTED."""
        return self._context

    async def start(self) -> tuple[InstanceRecord, ...]:
        """
        Send the Enumerate request.

        Returns:
            Items the peer delivered with the Enumerate response (only with
            optimized enumeration, otherwise empty).

        Raises:
            StateError: If the cursor was already started.
            ProtocolError: If the response carries no context. The cursor
                stays IDLE.
        """
        if self._state is not CursorState.IDLE:
            msg = "Enumeration already started"
            raise StateError(msg, state=self._state)

        body = EnumerateRequest(
            optimize=self._optimize,
            max_elements=self._max_elements if self._optimize else None,
        )
        envelope = self._session.build_envelope(self._resource_uri, Action.ENUMERATE, body=body)
        result = await self._transport.execute(envelope, self._session, deadline=self._deadline)
        page = parse_enumerate_response(result.content)

        self._advance(page)
        logger.debug(
            "Enumeration started",
            resource_uri=self._resource_uri,
            items=len(page.items),
            done=page.end_of_sequence,
        )
        return page.items

    async def pull(self, context: str | None = None) -> EnumerationPage:
        """
        Fetch the next page.

        Args:
            context: Context to pull with. Defaults to the current one; any
                other value is rejected.

        Returns:
            The page, whose ``context`` is None once the sequence is done.

        Raises:
            StateError: If the context is empty or stale, or the cursor is
                not STARTED. No request is sent in that case.
        """
        if context is None:
            context = self._context
        if not context:
            msg = "Pull requires a non-empty enumeration context"
            raise StateError(msg, state=self._state)
        if self._state is not CursorState.STARTED:
            msg = f"Cannot pull while {self._state}"
            raise StateError(msg, state=self._state)
        if context != self._context:
            msg = "Context does not belong to the current enumeration"
            raise StateError(msg, state=self._state)

        self._state = CursorState.PULLING
        try:
            envelope = self._session.build_envelope(
                self._resource_uri,
                Action.PULL,
                body=PullRequest(
                    context=context,
                    max_elements=self._max_elements,
                    max_characters=self._max_characters,
                ),
            )
            result = await self._transport.execute(
                envelope, self._session, deadline=self._deadline
            )
            page = parse_pull_response(result.content)
        except BaseException:
            self._state = CursorState.STARTED
            raise

        self._advance(page)
        logger.debug("Page pulled", items=len(page.items), done=page.end_of_sequence)
        return page

    async def release(self) -> None:
        """
        Abandon the sequence, telling the peer to drop its context.

        The cursor ends DONE even if the Release request fails.
        """
        if self._state is CursorState.DONE:
            return
        if self._state is not CursorState.STARTED or self._context is None:
            msg = f"Cannot release while {self._state}"
            raise StateError(msg, state=self._state)

        envelope = self._session.build_envelope(
            self._resource_uri,
            Action.RELEASE,
            body=ReleaseRequest(context=self._context),
        )
        try:
            await self._transport.execute(envelope, self._session, deadline=self._deadline)
        finally:
            self._state = CursorState.DONE
            self._context = None

    async def __aiter__(self) -> AsyncIterator[InstanceRecord]:
        if self._state is CursorState.IDLE:
            for item in await self.start():
                yield item
        while self._state is CursorState.STARTED:
            page = await self.pull()
            for item in page.items:
                yield item

    def _advance(self, page: EnumerationPage) -> None:
        if page.end_of_sequence:
            self._state = CursorState.DONE
            self._context = None
        else:
            self._state = CursorState.STARTED
            self._context = page.context
