from wsman.exceptions import (
    AuthenticationError,
    AuthParseError,
    ProtocolError,
    RequestTimeoutError,
    StateError,
    TransportError,
    WsmanError,
)


def test_wsman_error_str_without_context() -> None:
    error = WsmanError("Something failed")

    assert str(error) == "Something failed"


def test_wsman_error_str_with_context() -> None:
    error = WsmanError("Failed", endpoint="http://h:16992/wsman", attempt=2)

    assert "Failed" in str(error)
    assert "endpoint='http://h:16992/wsman'" in str(error)
    assert "attempt=2" in str(error)


def test_request_timeout_is_transport_error() -> None:
    error = RequestTimeoutError(deadline=1.5)

    assert isinstance(error, TransportError)
    assert error.deadline == 1.5
    assert str(error) == "Request timed out (deadline=1.5)"


def test_auth_parse_error_is_authentication_error() -> None:
    error = AuthParseError("bad challenge", header="Basic")

    assert isinstance(error, AuthenticationError)
    assert error.header == "Basic"


def test_protocol_error_includes_fault_only_when_present() -> None:
    with_fault = ProtocolError("SOAP fault", status=400, fault="Access denied")
    without_fault = ProtocolError("HTTP 500", status=500, body="oops")

    assert "fault='Access denied'" in str(with_fault)
    assert "fault" not in str(without_fault)
    assert without_fault.body == "oops"


def test_state_error_records_state() -> None:
    error = StateError("Cannot pull", state="done")

    assert error.state == "done"
    assert "state='done'" in str(error)
