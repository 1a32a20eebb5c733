"""
WS-Management client facade.

This is the main entry point for users of the library. It wires a Session
and an AsyncTransport together and hands out ResourceService objects.
"""

from typing import Self

import httpx
import structlog

from wsman.api.transport import AsyncTransport, RequestResult
from wsman.config import WsmanConfig
from wsman.message.envelope import Envelope
from wsman.message.namespaces import Schema
from wsman.resources import lookup
from wsman.resources.base import ResourceClass
from wsman.services.resource import ResourceService
from wsman.session import Session

logger = structlog.get_logger(__name__)


class WsmanClient:
    """
    Async client for one WS-Management endpoint.

    Example:
        ```python
        config = WsmanConfig(target="192.168.1.20", username="admin",
                             password="P@ssw0rd", use_digest=True)
        async with WsmanClient(config) as client:
            settings = await client.amt("GeneralSettings").get()
            print(settings["HostName"])

            async for port in client.amt("EthernetPortSettings").cursor():
                print(port["InstanceID"])
        ```

    Args:
        config: Endpoint and credential settings.
        transport: Optional httpx transport for testing (mock transport).
    """

    def __init__(
        self,
        config: WsmanConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._session = Session(config)
        self._transport = AsyncTransport(transport=transport)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close pooled connections."""
        await self._transport.close()
        logger.debug("Client closed", endpoint=self._config.endpoint)

    @property
    def session(self) -> Session:
        return self._session

    def resource(self, resource: ResourceClass | str) -> ResourceService:
        """
        Operations on a management class.

        Args:
            resource: Class definition, or a class name such as
                ``"AMT_GeneralSettings"`` looked up in the catalogue.

        Raises:
            ValueError: If a class name has no recognizable schema prefix.
        """
        if isinstance(resource, str):
            resource = lookup(resource)
        return ResourceService(resource, self._session, self._transport)

    def amt(self, name: str) -> ResourceService:
        """Shortcut for ``resource("AMT_" + name)``."""
        return self._in_schema(name, Schema.AMT, "AMT_")

    def cim(self, name: str) -> ResourceService:
        """Shortcut for ``resource("CIM_" + name)``."""
        return self._in_schema(name, Schema.CIM, "CIM_")

    def ips(self, name: str) -> ResourceService:
        """Shortcut for ``resource("IPS_" + name)``."""
        return self._in_schema(name, Schema.IPS, "IPS_")

    async def execute(self, envelope: Envelope) -> RequestResult:
        """Send an envelope built with ``client.session`` and return the raw response."""
        return await self._transport.execute(envelope, self._session)

    def _in_schema(self, name: str, schema: Schema, prefix: str) -> ResourceService:
        class_name = name if name.startswith(prefix) else prefix + name
        resource = lookup(class_name)
        if resource.schema is not schema:
            resource = ResourceClass(name=class_name, schema=schema)
        return self.resource(resource)
