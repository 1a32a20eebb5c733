"""
Conversion between typed records and XML elements.

Records are dataclasses (or plain mappings) whose fields become child
elements in declaration order. The XML element name of a dataclass field is
taken from its ``xml`` metadata and defaults to the field name.
"""

import base64
import dataclasses
from collections.abc import Mapping
from enum import Enum
from typing import Any
from xml.etree import ElementTree

from wsman.exceptions import EncodingError
from wsman.message.namespaces import NS_XSI, qname, split_qname

XML_NAME = "xml"


def xml_field(name: str, **kwargs: Any) -> Any:
    """Declare a dataclass field serialized under the XML element ``name``."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[XML_NAME] = name
    return dataclasses.field(metadata=metadata, **kwargs)


def record_items(record: Any) -> list[tuple[str, Any]]:
    """
    List the (element name, value) pairs of a record in declaration order.

    Raises:
        EncodingError: If the record is neither a dataclass instance nor a mapping.
    """
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return [
            (f.metadata.get(XML_NAME, f.name), getattr(record, f.name))
            for f in dataclasses.fields(record)
        ]
    if isinstance(record, Mapping):
        return [(str(k), v) for k, v in record.items()]
    msg = "Record must be a dataclass instance or a mapping"
    raise EncodingError(msg, record_type=type(record).__name__)


def format_value(value: Any) -> str:
    """Render a scalar the way WS-Management expects it on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return format_value(value.value)
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, int | float | str):
        return str(value)
    msg = "Unsupported value type"
    raise EncodingError(msg, value_type=type(value).__name__)


def append_record(parent: ElementTree.Element, namespace: str, record: Any) -> None:
    """Append one child element per record field to ``parent``."""
    for name, value in record_items(record):
        _append_value(parent, namespace, name, value)


def _append_value(parent: ElementTree.Element, namespace: str, name: str, value: Any) -> None:
    if not name:
        msg = "Record field without an element name"
        raise EncodingError(msg)
    if value is None:
        return
    if isinstance(value, list | tuple):
        for item in value:
            _append_value(parent, namespace, name, item)
        return

    child = ElementTree.SubElement(parent, qname(namespace, name))
    if isinstance(value, Mapping) or (
        dataclasses.is_dataclass(value) and not isinstance(value, type)
    ):
        append_record(child, namespace, value)
    else:
        child.text = format_value(value)


def element_to_dict(element: ElementTree.Element) -> dict[str, Any]:
    """
    Decode the children of ``element`` into a dict keyed by local name.

    Leaf elements become their text (``None`` when marked ``xsi:nil``),
    elements with children become nested dicts, and repeated names collect
    into lists.
    """
    result: dict[str, Any] = {}
    for child in element:
        _, local = split_qname(child.tag)
        value = _element_value(child)
        if local in result:
            existing = result[local]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[local] = [existing, value]
        else:
            result[local] = value
    return result


def _element_value(element: ElementTree.Element) -> Any:
    if element.get(qname(NS_XSI, "nil")) == "true":
        return None
    if len(element):
        return element_to_dict(element)
    return element.text or ""
