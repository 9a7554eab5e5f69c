"""Orchestrates the controller and the WebSocket endpoint: the server-side entry point.

ServerApp owns ServerApplicationState, the unit backend, ServerController,
ControlHandler and WsServer. It starts and stops them in the correct order.
"""

import logging
from typing import TYPE_CHECKING

from landing_page.ServerApplicationState import ServerApplicationState
from landing_page.controller.ServerController import ServerController
from landing_page.server.ControlHandler import ControlHandler
from landing_page.server.WsServer import WsServer
from landing_page.units.UnitFactory import create_unit

if TYPE_CHECKING:
    from landing_page.ServerConfig import ServerConfig
    from landing_page.units.Unit import Unit

logger = logging.getLogger(__name__)


class ServerApp:
    """Wires all server-side components for one process lifetime.

    Args:
        config: Loaded server configuration.
        unit: Backend to control; built from config via create_unit() when omitted.
    """

    def __init__(self, config: "ServerConfig", unit: "Unit | None" = None) -> None:
        self._config = config
        self._stopped = False

        self.app_state = ServerApplicationState()

        self.unit = unit if unit is not None else create_unit(config)
        self.controller = ServerController(self.unit, refresh_rate=config.refresh_rate)

        self._handler = ControlHandler(
            controller=self.controller,
            app_state=self.app_state,
        )

        self._ws_server = WsServer(
            handler=self._handler,
            app_state=self.app_state,
            unit_name=self.unit.name,
            host=config.host,
            port=config.port,
            ssl_context=config.create_ssl_context(),
        )

    @property
    def port(self) -> int:
        """Bound WebSocket port (available after start()).

        Returns:
            Port number; 0 if start() has not been called.
        """
        return self._ws_server.port

    def start(self) -> None:
        """Start WsServer and transition state to running.

        Algorithm:
            1. Start WsServer (binds socket, blocks until ready).
            2. Transition ServerApplicationState to running.
        """
        self._ws_server.start()
        self.app_state.set_state("running")
        logger.info("ServerApp: running on port %s, controlling %s", self.port, self.unit.name)

    def stop(self) -> None:
        """Stop all server components gracefully.

        Algorithm:
            1. Guard against double-stop (idempotent).
            2. Transition state to stopping; boot/shutdown requests are refused from here on.
            3. Stop WsServer event loop; join to wait for thread exit.

        A boot or shutdown already issued to the unit is not cancelled.
        """
        if self._stopped:
            return
        self._stopped = True

        self.app_state.set_state("stopping")

        self._ws_server.stop()
        self._ws_server.join()
        logger.info("ServerApp: stopped")
