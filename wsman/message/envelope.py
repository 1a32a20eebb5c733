"""
SOAP envelope construction and parsing.

Building is pure: the caller supplies the message identifier (normally drawn
from its Session) and gets back an immutable Envelope carrying the serialized
document.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from xml.etree import ElementTree

from wsman.exceptions import EncodingError
from wsman.message.codec import append_record, element_to_dict
from wsman.message.namespaces import (
    ANONYMOUS_ADDRESS,
    NS_ADDRESSING,
    NS_ENUMERATION,
    NS_SOAP,
    NS_WSMAN,
    Action,
    qname,
    split_qname,
)

_ACTIONS_BY_VERB = {action.name.title(): action for action in Action}


@dataclass(frozen=True, slots=True)
class Selector:
    """One (name, value) pair identifying an instance. The value is opaque."""

    name: str
    value: str


@dataclass(frozen=True, kw_only=True)
class EnumerateRequest:
    """Body of a start-enumeration request."""

    optimize: bool = False
    max_elements: int | None = None


@dataclass(frozen=True, kw_only=True)
class PullRequest:
    """Body of a pull request carrying the current enumeration context."""

    context: str
    max_elements: int = 999
    max_characters: int = 99999


@dataclass(frozen=True, kw_only=True)
class ReleaseRequest:
    """Body telling the peer an enumeration is abandoned."""

    context: str


@dataclass(frozen=True, kw_only=True)
class RecordBody:
    """
    Typed payload serialized as ``<element_name>`` with one child per field.

    Attributes:
        element_name: Local name of the wrapper element (``Foo_INPUT`` or a class name).
        record: Dataclass instance or mapping.
        namespace: Namespace of the wrapper and its children. Defaults to the resource URI.
    """

    element_name: str
    record: Any
    namespace: str | None = None


Body = EnumerateRequest | PullRequest | ReleaseRequest | RecordBody


@dataclass(frozen=True, kw_only=True)
class Envelope:
    """An immutable request document and the values it was built from."""

    message_id: int
    to: str
    resource_uri: str
    action: str
    selectors: tuple[Selector, ...] = ()
    body: Body | None = None
    operation_timeout: str | None = None
    document: bytes = field(default=b"", repr=False, compare=False)


def normalize_selectors(
    selectors: Mapping[str, str] | Iterable[Selector | tuple[str, str]] | None,
) -> tuple[Selector, ...]:
    """Turn the accepted selector shapes into an ordered tuple of Selector."""
    if selectors is None:
        return ()
    pairs = selectors.items() if isinstance(selectors, Mapping) else selectors

    result = []
    for pair in pairs:
        if isinstance(pair, Selector):
            selector = pair
        else:
            try:
                name, value = pair
            except (TypeError, ValueError) as e:
                msg = "Selector must be a (name, value) pair"
                raise EncodingError(msg, selector=repr(pair)) from e
            selector = Selector(name=name, value=value)
        if not selector.name:
            msg = "Selector name must not be empty"
            raise EncodingError(msg)
        result.append(Selector(name=selector.name, value=str(selector.value)))
    return tuple(result)


def resolve_action(resource_uri: str, action: Action | str) -> str:
    """
    Resolve an action to its full URI.

    Standard verbs may be given as ``Action`` members or by verb name
    (``"Get"``, ``"Pull"``...). Full URIs pass through unchanged. Anything
    else is a class method name, addressed as ``resource_uri/method``.
    """
    if isinstance(action, Action):
        return action.value
    if not action or any(c.isspace() for c in action):
        msg = "Invalid action name"
        raise EncodingError(msg, action=action)
    if action in _ACTIONS_BY_VERB:
        return _ACTIONS_BY_VERB[action].value
    if "://" in action:
        return action
    return f"{resource_uri.rstrip('/')}/{action}"


class EnvelopeBuilder:
    """Builds request envelopes for one endpoint."""

    def __init__(self, *, to: str = "/wsman", operation_timeout: str | None = "PT60S") -> None:
        """
        Args:
            to: Destination address written to the ``a:To`` header.
            operation_timeout: ``w:OperationTimeout`` value, omitted when None.
        """
        self._to = to
        self._operation_timeout = operation_timeout

    def build(
        self,
        resource_uri: str,
        action: Action | str,
        *,
        message_id: int,
        selectors: Mapping[str, str] | Iterable[Selector | tuple[str, str]] | None = None,
        body: Body | None = None,
        require_selectors: bool = False,
    ) -> Envelope:
        """
        Build an envelope.

        Args:
            resource_uri: Full resource URI of the target class.
            action: Standard verb or class method name.
            message_id: Identifier written to ``a:MessageID``.
            selectors: Instance selectors, written verbatim in order.
            body: Request body; Enumerate defaults to an empty EnumerateRequest.
            require_selectors: Fail when no selector is given (targeted Get).

        Returns:
            The immutable envelope with its serialized document.

        Raises:
            EncodingError: If the input is incomplete for the chosen action.
        """
        if not resource_uri:
            msg = "Resource URI must not be empty"
            raise EncodingError(msg)
        if message_id < 0:
            msg = "Message identifier must not be negative"
            raise EncodingError(msg, message_id=message_id)

        action_uri = resolve_action(resource_uri, action)
        selector_set = normalize_selectors(selectors)
        body = self._check_body(action_uri, body, selector_set, require_selectors)

        envelope = Envelope(
            message_id=message_id,
            to=self._to,
            resource_uri=resource_uri,
            action=action_uri,
            selectors=selector_set,
            body=body,
            operation_timeout=self._operation_timeout,
        )
        document = ElementTree.tostring(
            _to_element(envelope), encoding="utf-8", xml_declaration=True
        )
        return replace(envelope, document=document)

    @staticmethod
    def _check_body(
        action_uri: str,
        body: Body | None,
        selectors: tuple[Selector, ...],
        require_selectors: bool,
    ) -> Body | None:
        if require_selectors and not selectors:
            msg = "Selectors are required for this request"
            raise EncodingError(msg, action=action_uri)

        match action_uri:
            case Action.GET:
                if body is not None:
                    msg = "Get does not take a body"
                    raise EncodingError(msg)
            case Action.DELETE:
                if not selectors:
                    msg = "Delete requires selectors"
                    raise EncodingError(msg)
                if body is not None:
                    msg = "Delete does not take a body"
                    raise EncodingError(msg)
            case Action.PUT | Action.CREATE:
                if not isinstance(body, RecordBody):
                    msg = "Put and Create require a record body"
                    raise EncodingError(msg, action=action_uri)
            case Action.ENUMERATE:
                if body is None:
                    return EnumerateRequest()
                if not isinstance(body, EnumerateRequest):
                    msg = "Enumerate takes an EnumerateRequest body"
                    raise EncodingError(msg)
            case Action.PULL:
                if not isinstance(body, PullRequest) or not body.context:
                    msg = "Pull requires an enumeration context"
                    raise EncodingError(msg)
            case Action.RELEASE:
                if not isinstance(body, ReleaseRequest) or not body.context:
                    msg = "Release requires an enumeration context"
                    raise EncodingError(msg)
            case _:
                if body is not None and not isinstance(body, RecordBody):
                    msg = "Method calls take a record body"
                    raise EncodingError(msg, action=action_uri)

        if isinstance(body, RecordBody) and not body.element_name:
            msg = "Record body requires an element name"
            raise EncodingError(msg)
        return body


def _to_element(envelope: Envelope) -> ElementTree.Element:
    root = ElementTree.Element(qname(NS_SOAP, "Envelope"))
    header = ElementTree.SubElement(root, qname(NS_SOAP, "Header"))

    ElementTree.SubElement(header, qname(NS_ADDRESSING, "Action")).text = envelope.action
    ElementTree.SubElement(header, qname(NS_ADDRESSING, "To")).text = envelope.to
    ElementTree.SubElement(header, qname(NS_WSMAN, "ResourceURI")).text = envelope.resource_uri
    ElementTree.SubElement(header, qname(NS_ADDRESSING, "MessageID")).text = str(
        envelope.message_id
    )
    reply_to = ElementTree.SubElement(header, qname(NS_ADDRESSING, "ReplyTo"))
    ElementTree.SubElement(reply_to, qname(NS_ADDRESSING, "Address")).text = ANONYMOUS_ADDRESS
    if envelope.operation_timeout:
        ElementTree.SubElement(
            header, qname(NS_WSMAN, "OperationTimeout")
        ).text = envelope.operation_timeout

    if envelope.selectors:
        selector_set = ElementTree.SubElement(header, qname(NS_WSMAN, "SelectorSet"))
        for selector in envelope.selectors:
            node = ElementTree.SubElement(
                selector_set, qname(NS_WSMAN, "Selector"), Name=selector.name
            )
            node.text = selector.value

    body = ElementTree.SubElement(root, qname(NS_SOAP, "Body"))
    _append_body(body, envelope)
    return root


def _append_body(parent: ElementTree.Element, envelope: Envelope) -> None:
    match envelope.body:
        case None:
            return
        case EnumerateRequest(optimize=optimize, max_elements=max_elements):
            node = ElementTree.SubElement(parent, qname(NS_ENUMERATION, "Enumerate"))
            if optimize:
                ElementTree.SubElement(node, qname(NS_WSMAN, "OptimizeEnumeration"))
                if max_elements is not None:
                    ElementTree.SubElement(node, qname(NS_WSMAN, "MaxElements")).text = str(
                        max_elements
                    )
        case PullRequest(context=context, max_elements=max_elements, max_characters=max_chars):
            node = ElementTree.SubElement(parent, qname(NS_ENUMERATION, "Pull"))
            ElementTree.SubElement(node, qname(NS_ENUMERATION, "EnumerationContext")).text = context
            ElementTree.SubElement(node, qname(NS_ENUMERATION, "MaxElements")).text = str(
                max_elements
            )
            ElementTree.SubElement(node, qname(NS_ENUMERATION, "MaxCharacters")).text = str(
                max_chars
            )
        case ReleaseRequest(context=context):
            node = ElementTree.SubElement(parent, qname(NS_ENUMERATION, "Release"))
            ElementTree.SubElement(node, qname(NS_ENUMERATION, "EnumerationContext")).text = context
        case RecordBody(element_name=name, record=record, namespace=namespace):
            namespace = namespace or envelope.resource_uri
            node = ElementTree.SubElement(parent, qname(namespace, name))
            append_record(node, namespace, record)


def parse_envelope(document: bytes | str) -> Envelope:
    """
    Parse a request document back into an Envelope.

    Record bodies come back as RecordBody holding a dict of the decoded
    fields, since the original record type is not on the wire.

    Raises:
        EncodingError: If the document is not a well-formed request envelope.
    """
    try:
        root = ElementTree.fromstring(document)
    except ElementTree.ParseError as e:
        msg = "Malformed envelope"
        raise EncodingError(msg) from e

    header = root.find(qname(NS_SOAP, "Header"))
    if root.tag != qname(NS_SOAP, "Envelope") or header is None:
        msg = "Document is not a SOAP envelope"
        raise EncodingError(msg)

    action = header.findtext(qname(NS_ADDRESSING, "Action"))
    resource_uri = header.findtext(qname(NS_WSMAN, "ResourceURI"))
    message_id = header.findtext(qname(NS_ADDRESSING, "MessageID"))
    if not action or not resource_uri or message_id is None:
        msg = "Envelope header is incomplete"
        raise EncodingError(msg)
    try:
        parsed_id = int(message_id)
    except ValueError as e:
        msg = "Message identifier is not a decimal number"
        raise EncodingError(msg, message_id=message_id) from e

    selectors = tuple(
        Selector(name=node.get("Name", ""), value=node.text or "")
        for node in header.iterfind(
            f"{qname(NS_WSMAN, 'SelectorSet')}/{qname(NS_WSMAN, 'Selector')}"
        )
    )

    body_node = root.find(qname(NS_SOAP, "Body"))
    return Envelope(
        message_id=parsed_id,
        to=header.findtext(qname(NS_ADDRESSING, "To")) or "",
        resource_uri=resource_uri,
        action=action,
        selectors=selectors,
        body=_parse_body(body_node[0]) if body_node is not None and len(body_node) else None,
        operation_timeout=header.findtext(qname(NS_WSMAN, "OperationTimeout")),
        document=document.encode() if isinstance(document, str) else document,
    )


def _parse_body(node: ElementTree.Element) -> Body:
    namespace, local = split_qname(node.tag)
    if namespace == NS_ENUMERATION:
        context = node.findtext(qname(NS_ENUMERATION, "EnumerationContext")) or ""
        if local == "Enumerate":
            max_elements = node.findtext(qname(NS_WSMAN, "MaxElements"))
            return EnumerateRequest(
                optimize=node.find(qname(NS_WSMAN, "OptimizeEnumeration")) is not None,
                max_elements=_parse_int(max_elements, "MaxElements") if max_elements else None,
            )
        if local == "Pull":
            return PullRequest(
                context=context,
                max_elements=_parse_int(
                    node.findtext(qname(NS_ENUMERATION, "MaxElements")) or "0", "MaxElements"
                ),
                max_characters=_parse_int(
                    node.findtext(qname(NS_ENUMERATION, "MaxCharacters")) or "0", "MaxCharacters"
                ),
            )
        if local == "Release":
            return ReleaseRequest(context=context)
    return RecordBody(element_name=local, record=element_to_dict(node), namespace=namespace)


def _parse_int(text: str, element: str) -> int:
    try:
        return int(text)
    except ValueError as e:
        msg = f"{element} is not a decimal number"
        raise EncodingError(msg, value=text) from e
