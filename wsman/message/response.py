"""
Decoding of response envelopes.

Only the protocol shapes are interpreted here (faults, enumeration pages,
method outputs). Instance payloads are decoded generically into
InstanceRecord; mapping them onto typed per-class records is left to callers.
"""

from dataclasses import dataclass, field
from typing import Any
from xml.etree import ElementTree

import structlog

from wsman.exceptions import ProtocolError
from wsman.message.codec import element_to_dict
from wsman.message.namespaces import NS_ADDRESSING, NS_SOAP, qname, split_qname

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, kw_only=True)
class InstanceRecord:
    """
    One decoded management object.

    Attributes:
        class_name: Local element name, usually the CIM class (``AMT_GeneralSettings``).
        namespace: Namespace URI of the element.
        properties: Child values keyed by local name.
    """

    class_name: str
    namespace: str
    properties: dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.properties[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)


@dataclass(frozen=True, kw_only=True)
class ResponseEnvelope:
    """Header values and body element of a response document."""

    action: str | None
    relates_to: str | None
    message_id: str | None
    body: ElementTree.Element = field(repr=False, compare=False)


@dataclass(frozen=True, kw_only=True)
class EnumerationPage:
    """
    Items delivered by one Enumerate or Pull response.

    Attributes:
        items: Decoded items, possibly empty.
        context: Context for the next Pull. None once the sequence ended.
        end_of_sequence: Whether the peer signalled the end of the result set.
    """

    items: tuple[InstanceRecord, ...] = ()
    context: str | None = None
    end_of_sequence: bool = False


@dataclass(frozen=True, kw_only=True)
class MethodResult:
    """Output of a class method invocation (``Foo_OUTPUT``)."""

    method: str
    return_value: int | None
    properties: dict[str, Any] = field(default_factory=dict)


def _parse_document(content: bytes | str) -> ElementTree.Element:
    try:
        return ElementTree.fromstring(content)
    except ElementTree.ParseError as e:
        msg = "Response is not well-formed XML"
        raise ProtocolError(msg, body=_as_text(content)) from e


def _as_text(content: bytes | str) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def _child(element: ElementTree.Element, local: str) -> ElementTree.Element | None:
    """First direct child with the given local name, whatever its namespace."""
    for child in element:
        if split_qname(child.tag)[1] == local:
            return child
    return None


def _fault_reason(fault: ElementTree.Element) -> str:
    reason = fault.findtext(f"{qname(NS_SOAP, 'Reason')}/{qname(NS_SOAP, 'Text')}")
    if reason:
        return reason.strip()
    subcode = fault.findtext(
        f"{qname(NS_SOAP, 'Code')}/{qname(NS_SOAP, 'Subcode')}/{qname(NS_SOAP, 'Value')}"
    )
    if subcode:
        return subcode.strip()
    return fault.findtext(f"{qname(NS_SOAP, 'Code')}/{qname(NS_SOAP, 'Value')}") or "Unknown fault"


def fault_reason(content: bytes | str) -> str | None:
    """
    Extract the SOAP fault reason from an error body.

    Returns:
        The reason text, or None when the body carries no readable fault.
    """
    try:
        root = ElementTree.fromstring(content)
    except ElementTree.ParseError:
        return None
    fault = root.find(f"{qname(NS_SOAP, 'Body')}/{qname(NS_SOAP, 'Fault')}")
    if fault is None:
        return None
    return _fault_reason(fault)


def parse_response(content: bytes | str) -> ResponseEnvelope:
    """
    Parse a response document.

    Raises:
        ProtocolError: If the document is malformed, is not a SOAP envelope,
            or carries a SOAP fault.
    """
    root = _parse_document(content)
    body = root.find(qname(NS_SOAP, "Body"))
    if root.tag != qname(NS_SOAP, "Envelope") or body is None:
        msg = "Response is not a SOAP envelope"
        raise ProtocolError(msg, body=_as_text(content))

    fault = body.find(qname(NS_SOAP, "Fault"))
    if fault is not None:
        reason = _fault_reason(fault)
        logger.debug("SOAP fault received", fault=reason)
        raise ProtocolError("SOAP fault", body=_as_text(content), fault=reason)

    header = root.find(qname(NS_SOAP, "Header"))
    if header is None:
        header = ElementTree.Element(qname(NS_SOAP, "Header"))
    return ResponseEnvelope(
        action=header.findtext(qname(NS_ADDRESSING, "Action")),
        relates_to=header.findtext(qname(NS_ADDRESSING, "RelatesTo")),
        message_id=header.findtext(qname(NS_ADDRESSING, "MessageID")),
        body=body,
    )


def _to_record(element: ElementTree.Element) -> InstanceRecord:
    namespace, local = split_qname(element.tag)
    return InstanceRecord(
        class_name=local,
        namespace=namespace,
        properties=element_to_dict(element),
    )


def parse_instance(content: bytes | str) -> InstanceRecord:
    """
    Decode the single instance returned by Get, Put or Create.

    Raises:
        ProtocolError: If the body is empty.
    """
    response = parse_response(content)
    if not len(response.body):
        msg = "Response body is empty"
        raise ProtocolError(msg, body=_as_text(content))
    return _to_record(response.body[0])


def _parse_page(content: bytes | str, wrapper: str) -> EnumerationPage:
    response = parse_response(content)
    node = _child(response.body, wrapper)
    if node is None:
        msg = f"Response does not contain {wrapper}"
        raise ProtocolError(msg, body=_as_text(content))

    items_node = _child(node, "Items")
    items = tuple(_to_record(item) for item in items_node) if items_node is not None else ()
    end_of_sequence = _child(node, "EndOfSequence") is not None

    context_node = _child(node, "EnumerationContext")
    context = (context_node.text or "").strip() if context_node is not None else ""

    if end_of_sequence:
        return EnumerationPage(items=items, context=None, end_of_sequence=True)
    if not context:
        msg = f"{wrapper} carries no enumeration context"
        raise ProtocolError(msg, body=_as_text(content))
    return EnumerationPage(items=items, context=context, end_of_sequence=False)


def parse_enumerate_response(content: bytes | str) -> EnumerationPage:
    """
    Decode an EnumerateResponse.

    Raises:
        ProtocolError: If the response carries neither a context nor an
            end-of-sequence marker.
    """
    return _parse_page(content, "EnumerateResponse")


def parse_pull_response(content: bytes | str) -> EnumerationPage:
    """
    Decode a PullResponse.

    Raises:
        ProtocolError: If the response carries neither a fresh context nor an
            end-of-sequence marker.
    """
    return _parse_page(content, "PullResponse")


def parse_method_response(content: bytes | str, method: str) -> MethodResult:
    """
    Decode the ``{method}_OUTPUT`` element of a method invocation response.

    Raises:
        ProtocolError: If the output element is missing.
    """
    response = parse_response(content)
    node = _child(response.body, f"{method}_OUTPUT")
    if node is None:
        msg = f"Response does not contain {method}_OUTPUT"
        raise ProtocolError(msg, body=_as_text(content))

    properties = element_to_dict(node)
    raw = properties.get("ReturnValue")
    return_value = int(raw) if isinstance(raw, str) and raw.strip().isdigit() else None
    return MethodResult(method=method, return_value=return_value, properties=properties)
