"""Encode and decode WebSocket control protocol frames (v1).

All messages are UTF-8 JSON text frames. Responses carry the request type
with a ``_response`` suffix and a ``status`` of ``"ok"`` or ``"internal_error"``.
"""

import json

from landing_page.network.types import (
    REQUEST_KINDS,
    ClientTextMessage,
    ControlErrorResponse,
    ControlRequest,
    ControlResponse,
    ServerMessage,
    WsConnected,
    WsError,
)


class InvalidJsonError(ValueError):
    """Client frame is not valid JSON."""


class UnknownMessageTypeError(ValueError):
    """Client frame has a missing or unrecognised ``type``."""


# ---------------------------------------------------------------------------
# JSON text frames: server → client
# ---------------------------------------------------------------------------

def encode_server_message(msg: ServerMessage) -> str:
    """Encode a server-side message dataclass to a UTF-8 JSON string.

    Args:
        msg: One of WsConnected, ControlResponse, ControlErrorResponse, WsError.

    Returns:
        JSON string suitable for sending as a WebSocket text frame.

    Raises:
        TypeError: If msg is not a recognised server message type.
    """
    if isinstance(msg, WsConnected):
        obj: dict = {
            "type": "connected",
            "protocol_version": msg.protocol_version,
            "server_time": msg.server_time,
            "unit_name": msg.unit_name,
        }
    elif isinstance(msg, ControlResponse):
        obj = {
            "type": f"{msg.kind}_response",
            "request_id": msg.request_id,
            "status": "ok",
        }
        if msg.state is not None:
            obj["state"] = msg.state.value
    elif isinstance(msg, ControlErrorResponse):
        obj = {
            "type": f"{msg.kind}_response",
            "request_id": msg.request_id,
            "status": "internal_error",
            "message": msg.message,
        }
    elif isinstance(msg, WsError):
        obj = {
            "type": "error",
            "error_code": msg.error_code,
            "message": msg.message,
        }
    else:
        raise TypeError(f"Unknown server message type: {type(msg)}")

    return json.dumps(obj)


# ---------------------------------------------------------------------------
# JSON text frames: client → server
# ---------------------------------------------------------------------------

def decode_client_message(text: str) -> ClientTextMessage:
    """Decode a UTF-8 JSON text frame from the client into a typed dataclass.

    Args:
        text: Raw JSON string from a WebSocket text frame.

    Returns:
        ControlRequest (only client text message type in v1).

    Raises:
        InvalidJsonError: If the frame is not a JSON object.
        UnknownMessageTypeError: If ``type`` is missing or not a known request.
        ValueError: If ``request_id`` is present but not a string.
    """
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidJsonError(f"Invalid JSON in client message: {exc}") from exc

    if not isinstance(obj, dict):
        raise InvalidJsonError(f"Client message must be a JSON object, got {type(obj).__name__}")

    msg_type = obj.get("type")
    if msg_type is None:
        raise UnknownMessageTypeError("Client message missing 'type' field")
    if msg_type not in REQUEST_KINDS:
        raise UnknownMessageTypeError(f"unknown message type: {msg_type!r}")

    request_id = obj.get("request_id")
    if request_id is not None and not isinstance(request_id, str):
        raise ValueError(f"Invalid request_id {request_id!r}: must be a string")

    return ControlRequest(kind=msg_type, request_id=request_id)


def error_for_decode_failure(exc: ValueError) -> WsError:
    """Map a decode_client_message failure to the error frame sent back."""
    if isinstance(exc, InvalidJsonError):
        return WsError(error_code="INVALID_JSON", message=str(exc))
    if isinstance(exc, UnknownMessageTypeError):
        return WsError(error_code="UNKNOWN_MESSAGE_TYPE", message=str(exc))
    return WsError(error_code="PROTOCOL_VIOLATION", message=str(exc))
