"""WebSocket wire protocol message types for the server control channel (v1)."""

from dataclasses import dataclass
from typing import Literal

from landing_page.types import ServerState

PROTOCOL_VERSION = "v1"

RequestKind = Literal["server_status", "boot_server", "shutdown_server"]
REQUEST_KINDS: tuple[str, ...] = ("server_status", "boot_server", "shutdown_server")


# ---------------------------------------------------------------------------
# Client → Server
# ---------------------------------------------------------------------------

@dataclass
class ControlRequest:
    """JSON request frame sent from client to server.

    Args:
        kind: Which operation to perform.
        request_id: Optional correlation identifier echoed in the response.
    """

    kind: RequestKind
    request_id: str | None = None


# ---------------------------------------------------------------------------
# Server → Client
# ---------------------------------------------------------------------------

@dataclass
class WsConnected:
    """JSON connected frame sent from server to client right after connect.

    Args:
        protocol_version: Wire protocol version string (``"v1"``).
        server_time: Server wall-clock time at connect.
        unit_name: Name of the managed unit.
    """

    protocol_version: str
    server_time: float
    unit_name: str


@dataclass
class ControlResponse:
    """Successful answer to a ControlRequest.

    Args:
        kind: Kind of the request being answered.
        request_id: Correlation identifier copied from the request.
        state: Current server state; set only for ``server_status``.
    """

    kind: RequestKind
    request_id: str | None = None
    state: ServerState | None = None


@dataclass
class ControlErrorResponse:
    """Internal-error answer to a ControlRequest.

    Args:
        kind: Kind of the request being answered.
        request_id: Correlation identifier copied from the request.
        message: Human-readable description of the failure.
    """

    kind: RequestKind
    request_id: str | None
    message: str


@dataclass
class WsError:
    """JSON error frame for frames that could not be decoded into a request.

    Args:
        error_code: Machine-readable error code (v1 enum).
        message: Human-readable description.
    """

    error_code: Literal[
        "INVALID_JSON",
        "UNKNOWN_MESSAGE_TYPE",
        "PROTOCOL_VIOLATION",
    ]
    message: str


# ---------------------------------------------------------------------------
# Union types
# ---------------------------------------------------------------------------

ServerMessage = WsConnected | ControlResponse | ControlErrorResponse | WsError
ClientTextMessage = ControlRequest
