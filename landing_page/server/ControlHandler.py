"""Maps control protocol requests onto ServerController calls."""

import logging
from typing import TYPE_CHECKING

from landing_page.errors import ControllerError
from landing_page.network.types import (
    ControlErrorResponse,
    ControlRequest,
    ControlResponse,
)

if TYPE_CHECKING:
    from landing_page.controller.ServerController import ServerController
    from landing_page.ServerApplicationState import ServerApplicationState

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"
NOT_RUNNING_MESSAGE = "Control server is not accepting commands"


class ControlHandler:
    """Answers each ControlRequest with a response message.

    Controller errors become internal-error responses carrying the error's
    formatted message. Anything else is logged with its traceback and answered
    with a fixed message so raw exception text never reaches the client.

    Args:
        controller: Shared lifecycle controller.
        app_state: Control server lifecycle; boot/shutdown are refused unless running.
    """

    def __init__(
        self,
        controller: "ServerController",
        app_state: "ServerApplicationState",
    ) -> None:
        self._controller = controller
        self._app_state = app_state

    async def handle(self, request: ControlRequest) -> ControlResponse | ControlErrorResponse:
        """Run one request to completion.

        Args:
            request: Decoded client request.

        Returns:
            ControlResponse on success, ControlErrorResponse on any failure.
        """
        logger.debug("ControlHandler: %s (request_id=%s)", request.kind, request.request_id)

        if request.kind != "server_status" and not self._app_state.is_running():
            return ControlErrorResponse(
                kind=request.kind, request_id=request.request_id, message=NOT_RUNNING_MESSAGE
            )

        try:
            if request.kind == "server_status":
                state = await self._controller.server_state()
                return ControlResponse(kind=request.kind, request_id=request.request_id, state=state)
            if request.kind == "boot_server":
                await self._controller.boot_server()
            elif request.kind == "shutdown_server":
                await self._controller.shutdown_server()
            else:
                raise ValueError(f"Unhandled request kind: {request.kind!r}")
        except ControllerError as exc:
            logger.warning("ControlHandler: %s failed: %s", request.kind, exc)
            return ControlErrorResponse(kind=request.kind, request_id=request.request_id, message=str(exc))
        except Exception:
            logger.exception("ControlHandler: unexpected error handling %s", request.kind)
            return ControlErrorResponse(
                kind=request.kind, request_id=request.request_id, message=INTERNAL_ERROR_MESSAGE
            )

        return ControlResponse(kind=request.kind, request_id=request.request_id)
