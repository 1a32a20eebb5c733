"""
WS-Management message layer.

Builds request envelopes and decodes response documents. No I/O.
"""

from wsman.message.codec import element_to_dict, xml_field
from wsman.message.envelope import (
    EnumerateRequest,
    Envelope,
    EnvelopeBuilder,
    PullRequest,
    RecordBody,
    ReleaseRequest,
    Selector,
    parse_envelope,
    resolve_action,
)
from wsman.message.namespaces import CONTENT_TYPE, Action, Schema
from wsman.message.response import (
    EnumerationPage,
    InstanceRecord,
    MethodResult,
    fault_reason,
    parse_enumerate_response,
    parse_instance,
    parse_method_response,
    parse_pull_response,
    parse_response,
)

__all__ = [
    "CONTENT_TYPE",
    "Action",
    "Schema",
    # Requests
    "Envelope",
    "EnvelopeBuilder",
    "EnumerateRequest",
    "PullRequest",
    "ReleaseRequest",
    "RecordBody",
    "Selector",
    "parse_envelope",
    "resolve_action",
    "xml_field",
    # Responses
    "EnumerationPage",
    "InstanceRecord",
    "MethodResult",
    "element_to_dict",
    "fault_reason",
    "parse_enumerate_response",
    "parse_instance",
    "parse_method_response",
    "parse_pull_response",
    "parse_response",
]
