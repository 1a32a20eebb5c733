from dataclasses import dataclass
from enum import Enum
from xml.etree import ElementTree

import pytest

from wsman.exceptions import EncodingError
from wsman.message.codec import (
    append_record,
    element_to_dict,
    format_value,
    record_items,
    xml_field,
)
from wsman.message.namespaces import NS_XSI, qname

NS = "http://intel.com/wbem/wscim/1/amt-schema/1/AMT_Test"


class _Mode(Enum):
    OFF = 0
    ON = 1


@dataclass(frozen=True, kw_only=True)
class _Address:
    host: str = xml_field("Host")
    port: int = xml_field("Port")


@dataclass(frozen=True, kw_only=True)
class _Record:
    name: str = xml_field("Name")
    address: _Address | None = xml_field("Address", default=None)
    tags: list[str] = xml_field("Tag", default_factory=list)
    plain: str = "x"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (True, "true"),
        (False, "false"),
        (12, "12"),
        (1.5, "1.5"),
        ("text", "text"),
        (_Mode.ON, "1"),
        (b"\x00\x01", "AAE="),
    ],
)
def test_format_value(value: object, expected: str) -> None:
    assert format_value(value) == expected


def test_format_value_rejects_unknown_types() -> None:
    with pytest.raises(EncodingError):
        format_value({1, 2})


def test_record_items_follow_declaration_order() -> None:
    record = _Record(name="n")

    assert [name for name, _ in record_items(record)] == ["Name", "Address", "Tag", "plain"]


def test_record_items_rejects_non_records() -> None:
    with pytest.raises(EncodingError):
        record_items(42)


def test_record_items_rejects_dataclass_types() -> None:
    with pytest.raises(EncodingError):
        record_items(_Record)


def test_append_record_nests_and_repeats() -> None:
    parent = ElementTree.Element(qname(NS, "AMT_Test"))
    record = _Record(name="n", address=_Address(host="h", port=80), tags=["a", "b"])

    append_record(parent, NS, record)

    assert [child.tag for child in parent] == [
        qname(NS, "Name"),
        qname(NS, "Address"),
        qname(NS, "Tag"),
        qname(NS, "Tag"),
        qname(NS, "plain"),
    ]
    assert parent.find(f"{qname(NS, 'Address')}/{qname(NS, 'Port')}").text == "80"


def test_append_record_skips_none() -> None:
    parent = ElementTree.Element("root")

    append_record(parent, NS, {"A": None, "B": "1"})

    assert [child.tag for child in parent] == [qname(NS, "B")]


def test_element_to_dict() -> None:
    document = (
        f'<r xmlns:h="{NS}" xmlns:xsi="{NS_XSI}">'
        "<h:Name>n</h:Name>"
        "<h:Empty/>"
        '<h:Missing xsi:nil="true"/>'
        "<h:Tag>a</h:Tag><h:Tag>b</h:Tag><h:Tag>c</h:Tag>"
        "<h:Address><h:Host>h</h:Host></h:Address>"
        "</r>"
    )

    assert element_to_dict(ElementTree.fromstring(document)) == {
        "Name": "n",
        "Empty": "",
        "Missing": None,
        "Tag": ["a", "b", "c"],
        "Address": {"Host": "h"},
    }
