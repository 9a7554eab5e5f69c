"""Tests for the control protocol codec (v1).

Covers: encoding of every server message type, request decoding, and the
mapping from decode failures to error frames.
"""

import json

import pytest

from landing_page.network.codec import (
    InvalidJsonError,
    UnknownMessageTypeError,
    decode_client_message,
    encode_server_message,
    error_for_decode_failure,
)
from landing_page.network.types import (
    ControlErrorResponse,
    ControlRequest,
    ControlResponse,
    WsConnected,
    WsError,
)
from landing_page.types import ServerState


# ---------------------------------------------------------------------------
# Server → client
# ---------------------------------------------------------------------------

class TestEncodeServerMessage:
    def test_connected(self) -> None:
        msg = WsConnected(protocol_version="v1", server_time=1700000000.5, unit_name="mc_server.service")
        assert json.loads(encode_server_message(msg)) == {
            "type": "connected",
            "protocol_version": "v1",
            "server_time": 1700000000.5,
            "unit_name": "mc_server.service",
        }

    def test_status_response_carries_lowercase_state(self) -> None:
        msg = ControlResponse(kind="server_status", request_id="r1", state=ServerState.BOOTING)
        assert json.loads(encode_server_message(msg)) == {
            "type": "server_status_response",
            "request_id": "r1",
            "status": "ok",
            "state": "booting",
        }

    def test_boot_response_has_no_state(self) -> None:
        obj = json.loads(encode_server_message(ControlResponse(kind="boot_server")))
        assert obj == {"type": "boot_server_response", "request_id": None, "status": "ok"}

    def test_error_response(self) -> None:
        msg = ControlErrorResponse(
            kind="shutdown_server", request_id="r2", message="Can't turn server off in OFF state"
        )
        assert json.loads(encode_server_message(msg)) == {
            "type": "shutdown_server_response",
            "request_id": "r2",
            "status": "internal_error",
            "message": "Can't turn server off in OFF state",
        }

    def test_error_frame(self) -> None:
        obj = json.loads(encode_server_message(WsError(error_code="INVALID_JSON", message="bad")))
        assert obj == {"type": "error", "error_code": "INVALID_JSON", "message": "bad"}

    def test_unknown_message_type_raises(self) -> None:
        with pytest.raises(TypeError):
            encode_server_message(object())  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Client → server
# ---------------------------------------------------------------------------

class TestDecodeClientMessage:
    @pytest.mark.parametrize("kind", ["server_status", "boot_server", "shutdown_server"])
    def test_known_requests(self, kind: str) -> None:
        msg = decode_client_message(json.dumps({"type": kind, "request_id": "abc"}))
        assert msg == ControlRequest(kind=kind, request_id="abc")

    def test_request_id_optional(self) -> None:
        assert decode_client_message('{"type": "server_status"}').request_id is None

    def test_invalid_json(self) -> None:
        with pytest.raises(InvalidJsonError):
            decode_client_message("{not json")

    def test_non_object_json(self) -> None:
        with pytest.raises(InvalidJsonError, match="JSON object"):
            decode_client_message('["server_status"]')

    def test_missing_type(self) -> None:
        with pytest.raises(UnknownMessageTypeError, match="missing 'type'"):
            decode_client_message('{"request_id": "x"}')

    def test_unknown_type(self) -> None:
        with pytest.raises(UnknownMessageTypeError, match="restart_server"):
            decode_client_message('{"type": "restart_server"}')

    def test_non_string_request_id(self) -> None:
        with pytest.raises(ValueError, match="request_id"):
            decode_client_message('{"type": "boot_server", "request_id": 7}')


class TestErrorForDecodeFailure:
    def test_invalid_json_code(self) -> None:
        assert error_for_decode_failure(InvalidJsonError("x")).error_code == "INVALID_JSON"

    def test_unknown_type_code(self) -> None:
        assert error_for_decode_failure(UnknownMessageTypeError("x")).error_code == "UNKNOWN_MESSAGE_TYPE"

    def test_other_value_error_is_protocol_violation(self) -> None:
        err = error_for_decode_failure(ValueError("bad request_id"))
        assert err == WsError(error_code="PROTOCOL_VIOLATION", message="bad request_id")
