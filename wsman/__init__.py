"""
WS-Management Python Client.

An async client for WS-Management endpoints such as Intel AMT, with SOAP
envelope construction, HTTP digest authentication and enumeration cursors.

Example:
    ```python
    from wsman import WsmanClient, WsmanConfig

    config = WsmanConfig(
        target="192.168.1.20",
        username="admin",
        password="P@ssw0rd",
        use_digest=True,
    )
    async with WsmanClient(config) as client:
        # Read a singleton
        settings = await client.amt("GeneralSettings").get()
        print(settings["HostName"])

        # Walk an enumeration
        for package in await client.cim("SystemPackaging").list_all():
            print(package.class_name, package["Tag"])
    ```
"""

from wsman.api.digest import DigestAuthenticator, DigestChallenge
from wsman.api.transport import AsyncTransport, AuthState, RequestResult
from wsman.client import WsmanClient
from wsman.config import WsmanConfig
from wsman.enumeration import CursorState, EnumerationCursor
from wsman.exceptions import (
    AuthenticationError,
    AuthParseError,
    EncodingError,
    ProtocolError,
    RequestTimeoutError,
    StateError,
    TransportError,
    WsmanError,
)
from wsman.message.envelope import Envelope, EnvelopeBuilder, Selector
from wsman.message.namespaces import Action, Schema
from wsman.message.response import EnumerationPage, InstanceRecord, MethodResult
from wsman.resources.base import ResourceClass
from wsman.services.resource import ResourceService
from wsman.session import Session, TlsPolicy

__version__ = "0.1.0"

__all__ = [
    # Main client
    "WsmanClient",
    "WsmanConfig",
    "Session",
    "TlsPolicy",
    "ResourceClass",
    "ResourceService",
    # Protocol core
    "Action",
    "Schema",
    "Envelope",
    "EnvelopeBuilder",
    "Selector",
    "DigestAuthenticator",
    "DigestChallenge",
    "AsyncTransport",
    "AuthState",
    "RequestResult",
    "CursorState",
    "EnumerationCursor",
    # Results
    "InstanceRecord",
    "EnumerationPage",
    "MethodResult",
    # Exceptions
    "WsmanError",
    "EncodingError",
    "TransportError",
    "RequestTimeoutError",
    "AuthenticationError",
    "AuthParseError",
    "ProtocolError",
    "StateError",
]
