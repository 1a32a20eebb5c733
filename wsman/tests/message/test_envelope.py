from dataclasses import dataclass
from xml.etree import ElementTree

import pytest

from wsman.exceptions import EncodingError
from wsman.message.codec import xml_field
from wsman.message.envelope import (
    EnumerateRequest,
    EnvelopeBuilder,
    PullRequest,
    RecordBody,
    ReleaseRequest,
    Selector,
    normalize_selectors,
    parse_envelope,
    resolve_action,
)
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

RESOURCE_URI = "http://schemas.dmtf.org/wbem/wscim/1/cim-schema/2/TEST_Class"


@dataclass(frozen=True, kw_only=True)
class _Input:
    handle: int = xml_field("Handle")
    enabled: bool = xml_field("Enabled")
    note: str | None = xml_field("Note", default=None)


@pytest.fixture
def builder() -> EnvelopeBuilder:
    return EnvelopeBuilder()


def _header_names(document: bytes) -> list[str]:
    root = ElementTree.fromstring(document)
    return [split_qname(child.tag)[1] for child in root.find(qname(NS_SOAP, "Header"))]


# Round trip


def test_get_round_trips_through_parse(builder: EnvelopeBuilder) -> None:
    envelope = builder.build(RESOURCE_URI, "Get", message_id=0, selectors={"Name": "test"})

    parsed = parse_envelope(envelope.document)

    assert parsed == envelope
    assert parsed.action == Action.GET
    assert parsed.selectors == (Selector(name="Name", value="test"),)
    assert parsed.message_id == 0


def test_selector_values_are_escaped_and_restored(builder: EnvelopeBuilder) -> None:
    envelope = builder.build(
        RESOURCE_URI, Action.GET, message_id=3, selectors=[("Name", 'a<b & "c">')]
    )

    assert b"a&lt;b &amp;" in envelope.document
    assert parse_envelope(envelope.document).selectors[0].value == 'a<b & "c">'


def test_selectors_keep_caller_order(builder: EnvelopeBuilder) -> None:
    selectors = [Selector("Z", "1"), Selector("A", "2"), Selector("M", "3")]

    envelope = builder.build(RESOURCE_URI, Action.GET, message_id=0, selectors=selectors)

    assert [s.name for s in parse_envelope(envelope.document).selectors] == ["Z", "A", "M"]


def test_pull_round_trips_with_context(builder: EnvelopeBuilder) -> None:
    body = PullRequest(context="uuid:ctx-7", max_elements=10, max_characters=4096)

    envelope = builder.build(RESOURCE_URI, Action.PULL, message_id=8, body=body)

    assert parse_envelope(envelope.document).body == body


# Document layout


def test_header_order(builder: EnvelopeBuilder) -> None:
    envelope = builder.build(RESOURCE_URI, Action.GET, message_id=1, selectors={"Name": "x"})

    assert _header_names(envelope.document) == [
        "Action",
        "To",
        "ResourceURI",
        "MessageID",
        "ReplyTo",
        "OperationTimeout",
        "SelectorSet",
    ]


def test_header_values(builder: EnvelopeBuilder) -> None:
    envelope = builder.build(RESOURCE_URI, Action.GET, message_id=42)
    header = ElementTree.fromstring(envelope.document).find(qname(NS_SOAP, "Header"))

    assert header.findtext(qname(NS_ADDRESSING, "To")) == "/wsman"
    assert header.findtext(qname(NS_ADDRESSING, "MessageID")) == "42"
    assert header.findtext(qname(NS_WSMAN, "OperationTimeout")) == "PT60S"
    reply_to = header.find(qname(NS_ADDRESSING, "ReplyTo"))
    assert reply_to.findtext(qname(NS_ADDRESSING, "Address")) == ANONYMOUS_ADDRESS


def test_operation_timeout_can_be_omitted() -> None:
    envelope = EnvelopeBuilder(operation_timeout=None).build(RESOURCE_URI, "Get", message_id=0)

    assert "OperationTimeout" not in _header_names(envelope.document)
    assert parse_envelope(envelope.document).operation_timeout is None


def test_document_uses_registered_prefixes(builder: EnvelopeBuilder) -> None:
    envelope = builder.build(RESOURCE_URI, Action.ENUMERATE, message_id=0)

    assert envelope.document.startswith(b"<?xml")
    assert b"<s:Envelope" in envelope.document
    assert b"<a:Action>" in envelope.document
    assert b"<w:ResourceURI>" in envelope.document
    assert b"<e:Enumerate" in envelope.document


def test_enumerate_defaults_to_empty_request(builder: EnvelopeBuilder) -> None:
    envelope = builder.build(RESOURCE_URI, Action.ENUMERATE, message_id=0)

    assert envelope.body == EnumerateRequest()
    node = ElementTree.fromstring(envelope.document).find(
        f"{qname(NS_SOAP, 'Body')}/{qname(NS_ENUMERATION, 'Enumerate')}"
    )
    assert node is not None
    assert len(node) == 0


def test_optimized_enumerate_carries_max_elements(builder: EnvelopeBuilder) -> None:
    body = EnumerateRequest(optimize=True, max_elements=25)

    envelope = builder.build(RESOURCE_URI, Action.ENUMERATE, message_id=0, body=body)

    assert parse_envelope(envelope.document).body == body


def test_release_carries_context(builder: EnvelopeBuilder) -> None:
    envelope = builder.build(
        RESOURCE_URI, "Release", message_id=0, body=ReleaseRequest(context="ctx")
    )

    assert parse_envelope(envelope.document).body == ReleaseRequest(context="ctx")


def test_method_body_serializes_fields_in_order(builder: EnvelopeBuilder) -> None:
    body = RecordBody(element_name="SetAcl_INPUT", record=_Input(handle=7, enabled=True))

    envelope = builder.build(RESOURCE_URI, "SetAcl", message_id=0, body=body)

    assert envelope.action == f"{RESOURCE_URI}/SetAcl"
    parsed = parse_envelope(envelope.document).body
    assert parsed.element_name == "SetAcl_INPUT"
    assert parsed.namespace == RESOURCE_URI
    assert list(parsed.record.items()) == [("Handle", "7"), ("Enabled", "true")]


# Action resolution


@pytest.mark.parametrize(
    ("action", "expected"),
    [
        (Action.PUT, Action.PUT.value),
        ("Delete", Action.DELETE.value),
        ("Enumerate", Action.ENUMERATE.value),
        ("http://example.com/custom/Action", "http://example.com/custom/Action"),
        ("RequestStateChange", f"{RESOURCE_URI}/RequestStateChange"),
    ],
)
def test_resolve_action(action: str, expected: str) -> None:
    assert resolve_action(RESOURCE_URI, action) == expected


# Encoding errors


@pytest.mark.parametrize("action", ["", " ", "Get Thing"])
def test_invalid_action_name_raises(builder: EnvelopeBuilder, action: str) -> None:
    with pytest.raises(EncodingError):
        builder.build(RESOURCE_URI, action, message_id=0)


def test_empty_resource_uri_raises(builder: EnvelopeBuilder) -> None:
    with pytest.raises(EncodingError):
        builder.build("", Action.GET, message_id=0)


def test_negative_message_id_raises(builder: EnvelopeBuilder) -> None:
    with pytest.raises(EncodingError):
        builder.build(RESOURCE_URI, Action.GET, message_id=-1)


def test_empty_selector_name_raises(builder: EnvelopeBuilder) -> None:
    with pytest.raises(EncodingError):
        builder.build(RESOURCE_URI, Action.GET, message_id=0, selectors={"": "x"})


def test_required_selectors_missing_raises(builder: EnvelopeBuilder) -> None:
    with pytest.raises(EncodingError, match="Selectors are required"):
        builder.build(RESOURCE_URI, Action.GET, message_id=0, require_selectors=True)


def test_delete_without_selectors_raises(builder: EnvelopeBuilder) -> None:
    with pytest.raises(EncodingError):
        builder.build(RESOURCE_URI, Action.DELETE, message_id=0)


def test_get_with_body_raises(builder: EnvelopeBuilder) -> None:
    body = RecordBody(element_name="TEST_Class", record={})

    with pytest.raises(EncodingError):
        builder.build(RESOURCE_URI, Action.GET, message_id=0, body=body)


def test_put_without_record_raises(builder: EnvelopeBuilder) -> None:
    with pytest.raises(EncodingError):
        builder.build(RESOURCE_URI, Action.PUT, message_id=0)


@pytest.mark.parametrize("action", [Action.PULL, Action.RELEASE])
def test_context_actions_without_context_raise(builder: EnvelopeBuilder, action: Action) -> None:
    with pytest.raises(EncodingError):
        builder.build(RESOURCE_URI, action, message_id=0)


def test_pull_with_empty_context_raises(builder: EnvelopeBuilder) -> None:
    with pytest.raises(EncodingError):
        builder.build(RESOURCE_URI, Action.PULL, message_id=0, body=PullRequest(context=""))


def test_unsupported_record_value_raises(builder: EnvelopeBuilder) -> None:
    body = RecordBody(element_name="Foo_INPUT", record={"When": object()})

    with pytest.raises(EncodingError):
        builder.build(RESOURCE_URI, "Foo", message_id=0, body=body)


# Parsing


def test_parse_malformed_document_raises() -> None:
    with pytest.raises(EncodingError):
        parse_envelope(b"<s:Envelope")


def test_parse_non_envelope_raises() -> None:
    with pytest.raises(EncodingError):
        parse_envelope(b"<root><child/></root>")


def test_parse_non_numeric_message_id_raises(builder: EnvelopeBuilder) -> None:
    document = builder.build(RESOURCE_URI, Action.GET, message_id=5).document
    document = document.replace(b">5</a:MessageID>", b">uuid:5</a:MessageID>")

    with pytest.raises(EncodingError, match="decimal"):
        parse_envelope(document)


@pytest.mark.parametrize("selector", [("Name",), ("Name", "a", "b"), 42])
def test_malformed_selector_pair_raises(builder: EnvelopeBuilder, selector: object) -> None:
    with pytest.raises(EncodingError, match="pair"):
        builder.build(RESOURCE_URI, Action.GET, message_id=0, selectors=[selector])


def test_normalize_selectors_rejects_short_pair() -> None:
    with pytest.raises(EncodingError):
        normalize_selectors([("Name",)])


@pytest.mark.parametrize("element", [b"MaxElements", b"MaxCharacters"])
def test_parse_non_numeric_pull_limits_raises(builder: EnvelopeBuilder, element: bytes) -> None:
    document = builder.build(
        RESOURCE_URI, Action.PULL, message_id=0, body=PullRequest(context="ctx")
    ).document
    start = document.index(b"<e:" + element + b">") + len(element) + 4
    end = document.index(b"</e:" + element + b">")
    document = document[:start] + b"abc" + document[end:]

    with pytest.raises(EncodingError, match=element.decode()):
        parse_envelope(document)


def test_parse_non_numeric_enumerate_max_elements_raises(builder: EnvelopeBuilder) -> None:
    body = EnumerateRequest(optimize=True, max_elements=5)
    document = builder.build(RESOURCE_URI, Action.ENUMERATE, message_id=0, body=body).document
    document = document.replace(b">5</w:MaxElements>", b">many</w:MaxElements>")

    with pytest.raises(EncodingError):
        parse_envelope(document)
