"""
WS-Management transport layer.

Provides async HTTP execution of envelopes and Digest authentication.
"""

from wsman.api.digest import DigestAuthenticator, DigestChallenge
from wsman.api.transport import AsyncTransport, AuthState, RequestResult, sanitize_headers

__all__ = [
    "AsyncTransport",
    "AuthState",
    "DigestAuthenticator",
    "DigestChallenge",
    "RequestResult",
    "sanitize_headers",
]
