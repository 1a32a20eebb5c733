from typing import Any

import pytest

from wsman.message.envelope import EnvelopeBuilder, RecordBody, parse_envelope
from wsman.resources import amt, ips
from wsman.resources.base import ResourceClass


def _sent_input(resource: ResourceClass, method: str, arguments: Any) -> dict[str, Any]:
    body = RecordBody(element_name=f"{method}_INPUT", record=arguments)
    envelope = EnvelopeBuilder().build(resource.uri, method, message_id=0, body=body)
    parsed = parse_envelope(envelope.document).body
    assert parsed.element_name == f"{method}_INPUT"
    assert parsed.namespace == resource.uri
    return parsed.record


def test_enumerate_user_acl_entries_starts_at_one() -> None:
    record = _sent_input(
        amt.AMT_AuthorizationService,
        "EnumerateUserAclEntries",
        amt.EnumerateUserAclEntriesInput(),
    )

    assert record == {"StartIndex": "1"}


def test_enumerate_user_acl_entries_custom_start() -> None:
    record = _sent_input(
        amt.AMT_AuthorizationService,
        "EnumerateUserAclEntries",
        amt.EnumerateUserAclEntriesInput(start_index=51),
    )

    assert record == {"StartIndex": "51"}


@pytest.mark.parametrize(
    "method", ["GetAclEnabledState", "GetUserAclEntryEx", "RemoveUserAclEntry"]
)
def test_acl_handle_input(method: str) -> None:
    record = _sent_input(amt.AMT_AuthorizationService, method, amt.AclHandleInput(handle=7))

    assert record == {"Handle": "7"}


@pytest.mark.parametrize(("enabled", "text"), [(True, "true"), (False, "false")])
def test_set_acl_enabled_state_input(enabled: bool, text: str) -> None:
    record = _sent_input(
        amt.AMT_AuthorizationService,
        "SetAclEnabledState",
        amt.SetAclEnabledStateInput(handle=3, enabled=enabled),
    )

    assert list(record.items()) == [("Handle", "3"), ("Enabled", text)]


def test_set_admin_acl_entry_ex_input() -> None:
    record = _sent_input(
        amt.AMT_AuthorizationService,
        "SetAdminAclEntryEx",
        amt.SetAdminAclEntryExInput(
            username="admin", digest_password="8GnUT/XmSCPlYSbPWLs4Gg=="
        ),
    )

    assert list(record.items()) == [
        ("Username", "admin"),
        ("DigestPassword", "8GnUT/XmSCPlYSbPWLs4Gg=="),
    ]


def test_send_opt_in_code_input() -> None:
    record = _sent_input(
        ips.IPS_OptInService, "SendOptInCode", ips.SendOptInCodeInput(opt_in_code=123456)
    )

    assert record == {"OptInCode": "123456"}
