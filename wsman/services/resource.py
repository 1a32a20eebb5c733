"""
Generic verb set for management classes.

Every class supports the same operations (Get, Enumerate, Pull, Put,
Create, Delete and extrinsic methods); ResourceService implements them once
and is instantiated per ResourceClass.
"""

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from wsman.api.transport import AsyncTransport, RequestResult
from wsman.enumeration import EnumerationCursor
from wsman.exceptions import EncodingError, StateError
from wsman.message.envelope import (
    Body,
    EnumerateRequest,
    PullRequest,
    RecordBody,
    Selector,
)
from wsman.message.namespaces import Action
from wsman.message.response import (
    EnumerationPage,
    InstanceRecord,
    MethodResult,
    parse_enumerate_response,
    parse_instance,
    parse_method_response,
    parse_pull_response,
    parse_response,
)
from wsman.resources.base import ResourceClass
from wsman.session import Session

logger = structlog.get_logger(__name__)

Selectors = Mapping[str, str] | Iterable[Selector | tuple[str, str]]


class ResourceService:
    """
    Operations on one management class.

    Builds envelopes through the session, executes them through the
    transport and decodes the responses generically.
    """

    def __init__(
        self,
        resource: ResourceClass,
        session: Session,
        transport: AsyncTransport,
        *,
        deadline: float | None = None,
    ) -> None:
        """
        Args:
            resource: Class definition.
            session: Session shared with other services of the same endpoint.
            transport: Transport executing the envelopes.
            deadline: Per-call deadline, defaulting to the session configuration.
        """
        self._resource = resource
        self._session = session
        self._transport = transport
        self._deadline = deadline

    @property
    def resource(self) -> ResourceClass:
        return self._resource

    async def get(self, selectors: Selectors | None = None) -> InstanceRecord:
        """
        Retrieve the representation of an instance.

        Raises:
            EncodingError: If the class is keyed and no selector is given.
        """
        result = await self._call(
            Action.GET, selectors=selectors, require_selectors=self._resource.keyed
        )
        return parse_instance(result.content)

    async def enumerate(self, *, optimize: bool = False) -> EnumerationPage:
        """
        Start an enumeration and return the first response.

        Prefer ``cursor()`` or ``list_all()``, which track the context for you.
        """
        body = EnumerateRequest(
            optimize=optimize,
            max_elements=self._session.config.max_elements if optimize else None,
        )
        result = await self._call(Action.ENUMERATE, body=body)
        return parse_enumerate_response(result.content)

    async def pull(self, context: str) -> EnumerationPage:
        """
        Pull the next page of an enumeration started with ``enumerate()``.

        Raises:
            StateError: If the context is empty. No request is sent.
        """
        if not context:
            msg = "Pull requires a non-empty enumeration context"
            raise StateError(msg)
        config = self._session.config
        body = PullRequest(
            context=context,
            max_elements=config.max_elements,
            max_characters=config.max_characters,
        )
        result = await self._call(Action.PULL, body=body)
        return parse_pull_response(result.content)

    def cursor(self, **kwargs: Any) -> EnumerationCursor:
        """Create an enumeration cursor over the instances of this class."""
        kwargs.setdefault("deadline", self._deadline)
        return EnumerationCursor(self._session, self._transport, self._resource.uri, **kwargs)

    async def list_all(self) -> list[InstanceRecord]:
        """Enumerate every instance of this class."""
        items = [item async for item in self.cursor()]
        logger.debug("Instances listed", resource=self._resource.name, count=len(items))
        return items

    async def put(
        self,
        record: Any,
        *,
        selectors: Selectors | None = None,
    ) -> InstanceRecord:
        """
        Replace the writable properties of an instance.

        Args:
            record: Dataclass or mapping serialized as ``<ClassName>``.
            selectors: Instance selectors for keyed classes.

        Returns:
            The instance as returned by the endpoint.
        """
        body = RecordBody(element_name=self._resource.name, record=record)
        result = await self._call(
            Action.PUT,
            selectors=selectors,
            body=body,
            require_selectors=self._resource.keyed,
        )
        return parse_instance(result.content)

    async def create(self, record: Any) -> InstanceRecord:
        """
        Create an instance.

        Returns:
            The body of the response, usually a ``ResourceCreated`` reference.
        """
        body = RecordBody(element_name=self._resource.name, record=record)
        result = await self._call(Action.CREATE, body=body)
        return parse_instance(result.content)

    async def delete(self, selectors: Selectors) -> None:
        """
        Delete the instance identified by ``selectors``.

        Raises:
            EncodingError: If no selector is given.
        """
        result = await self._call(Action.DELETE, selectors=selectors)
        parse_response(result.content)

    async def invoke(
        self,
        method: str,
        arguments: Any = None,
        *,
        selectors: Selectors | None = None,
    ) -> MethodResult:
        """
        Invoke an extrinsic method.

        Args:
            method: Method name (``SetHighAccuracyTimeSynch``).
            arguments: Dataclass or mapping serialized as ``<method>_INPUT``.
            selectors: Instance selectors, when the method targets an instance.

        Raises:
            EncodingError: If the class declares its methods and ``method``
                is not one of them.
        """
        methods = self._resource.methods
        if methods and method not in methods:
            msg = f"{self._resource.name} has no method {method}"
            raise EncodingError(msg, method=method)

        if arguments is None:
            arguments = {}
        body = RecordBody(element_name=f"{method}_INPUT", record=arguments)
        result = await self._call(
            f"{self._resource.uri}/{method}", selectors=selectors, body=body
        )
        return parse_method_response(result.content, method)

    async def _call(
        self,
        action: Action | str,
        *,
        selectors: Selectors | None = None,
        body: Body | None = None,
        require_selectors: bool = False,
    ) -> RequestResult:
        envelope = self._session.build_envelope(
            self._resource.uri,
            action,
            selectors=selectors,
            body=body,
            require_selectors=require_selectors,
        )
        return await self._transport.execute(envelope, self._session, deadline=self._deadline)
