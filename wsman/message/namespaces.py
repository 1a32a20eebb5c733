"""
XML namespaces, action URIs and resource schemas used on the wire.
"""

from enum import StrEnum
from xml.etree import ElementTree

CONTENT_TYPE = "application/soap+xml; charset=utf-8"

NS_SOAP = "http://www.w3.org/2003/05/soap-envelope"
NS_ADDRESSING = "http://schemas.xmlsoap.org/ws/2004/08/addressing"
NS_WSMAN = "http://schemas.dmtf.org/wbem/wsman/1/wsman.xsd"
NS_ENUMERATION = "http://schemas.xmlsoap.org/ws/2004/09/enumeration"
NS_XSI = "http://www.w3.org/2001/XMLSchema-instance"

ANONYMOUS_ADDRESS = "http://schemas.xmlsoap.org/ws/2004/08/addressing/role/anonymous"

ElementTree.register_namespace("s", NS_SOAP)
ElementTree.register_namespace("a", NS_ADDRESSING)
ElementTree.register_namespace("w", NS_WSMAN)
ElementTree.register_namespace("e", NS_ENUMERATION)
ElementTree.register_namespace("xsi", NS_XSI)


class Action(StrEnum):
    """Standard WS-Transfer and WS-Enumeration action URIs."""

    GET = "http://schemas.xmlsoap.org/ws/2004/09/transfer/Get"
    PUT = "http://schemas.xmlsoap.org/ws/2004/09/transfer/Put"
    CREATE = "http://schemas.xmlsoap.org/ws/2004/09/transfer/Create"
    DELETE = "http://schemas.xmlsoap.org/ws/2004/09/transfer/Delete"
    ENUMERATE = "http://schemas.xmlsoap.org/ws/2004/09/enumeration/Enumerate"
    PULL = "http://schemas.xmlsoap.org/ws/2004/09/enumeration/Pull"
    RELEASE = "http://schemas.xmlsoap.org/ws/2004/09/enumeration/Release"


class Schema(StrEnum):
    """Resource URI bases of the class families a device exposes."""

    AMT = "http://intel.com/wbem/wscim/1/amt-schema/1/"
    CIM = "http://schemas.dmtf.org/wbem/wscim/1/cim-schema/2/"
    IPS = "http://intel.com/wbem/wscim/1/ips-schema/1/"


def qname(namespace: str, local: str) -> str:
    """Clark notation name understood by ElementTree."""
    return f"{{{namespace}}}{local}"


def split_qname(tag: str) -> tuple[str, str]:
    """Split a Clark notation tag into (namespace, local name)."""
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return "", tag
