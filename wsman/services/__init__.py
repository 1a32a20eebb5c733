"""
Resource-level operations built on the protocol core.
"""

from wsman.services.resource import ResourceService

__all__ = [
    "ResourceService",
]
