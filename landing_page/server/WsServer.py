"""WebSocket server: accepts control connections and dispatches requests.

Runs a websockets.serve() loop on a daemon asyncio event loop thread.
Every request frame is handled in its own task so status queries are
answered while a slow boot or shutdown is still in flight.
"""

import asyncio
import logging
import ssl
import threading
import time
from typing import TYPE_CHECKING, Any

from websockets.exceptions import ConnectionClosed

from landing_page.network.codec import (
    decode_client_message,
    encode_server_message,
    error_for_decode_failure,
)
from landing_page.network.types import (
    PROTOCOL_VERSION,
    ControlRequest,
    ServerMessage,
    WsConnected,
    WsError,
)

if TYPE_CHECKING:
    from landing_page.server.ControlHandler import ControlHandler
    from landing_page.ServerApplicationState import ServerApplicationState

logger = logging.getLogger(__name__)


class WsServer:
    """WebSocket server for the control channel.

    Runs on a dedicated daemon asyncio event loop thread.
    The server binds on the first call to start() and the bound port is
    available via the ``port`` property once the server is ready.

    Args:
        handler: Turns decoded requests into responses.
        app_state: Control server lifecycle; shutdown is logged.
        unit_name: Managed unit name announced in the connected frame.
        host: Hostname or IP to bind to (default ``"127.0.0.1"``).
        port: Port to listen on; 0 means OS assigns an available port.
        ssl_context: Serve over TLS when given.
    """

    def __init__(
        self,
        handler: "ControlHandler",
        app_state: "ServerApplicationState",
        unit_name: str,
        host: str = "127.0.0.1",
        port: int = 0,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self._handler = handler
        self._app_state = app_state
        self._unit_name = unit_name
        self._host = host
        self._port = port
        self._ssl_context = ssl_context
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._stop_event: asyncio.Event | None = None
        self._ready = threading.Event()
        self._startup_error: BaseException | None = None
        self._connections: set[Any] = set()

        app_state.register_observer(self._on_state_change)

    @property
    def port(self) -> int:
        """Return the bound port.

        Returns:
            The port number after start() completes; 0 if not started.
        """
        return self._port

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def start(self) -> None:
        """Start the asyncio event loop thread and begin accepting connections.

        Blocks until the server is bound and ready to accept connections.

        Raises:
            OSError: If the socket could not be bound.
        """
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, daemon=True, name="WsServer"
        )
        self._thread.start()
        self._ready.wait()
        if self._startup_error is not None:
            raise self._startup_error

    def stop(self) -> None:
        """Stop accepting connections and shut down the event loop thread."""
        if self._loop is None or self._loop.is_closed() or self._stop_event is None:
            return
        self._loop.call_soon_threadsafe(self._stop_event.set)

    def join(self, timeout: float = 5.0) -> None:
        """Wait for the event loop thread to exit.

        Args:
            timeout: Seconds to wait.
        """
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def _run_loop(self) -> None:
        """Run the asyncio event loop until stop() is called."""
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._serve())
        except Exception as exc:
            if not self._ready.is_set():
                self._startup_error = exc
                self._ready.set()
            else:
                logger.exception("WsServer: event loop failed")
        finally:
            self._loop.close()

    async def _serve(self) -> None:
        """Bind the WebSocket server and run the accept loop.

        Algorithm:
            1. Bind via websockets.serve() on the configured host:port.
            2. Record the actual bound port (important when port=0).
            3. Signal _ready so start() unblocks.
            4. Wait until stop() sets the stop event.
            5. Leaving the serve() context closes the server and all connections.
        """
        import websockets

        self._stop_event = asyncio.Event()
        async with websockets.serve(
            self._handle_connection, self._host, self._port, ssl=self._ssl_context
        ) as server:
            bound_port = server.sockets[0].getsockname()[1]
            self._port = bound_port
            scheme = "wss" if self._ssl_context is not None else "ws"
            logger.info("WsServer: listening on %s://%s:%s", scheme, self._host, self._port)
            self._ready.set()
            await self._stop_event.wait()
        logger.info("WsServer: stopped")

    async def _handle_connection(self, websocket, path: str = "/") -> None:
        """Handle a single WebSocket connection for its full lifetime.

        Algorithm:
            1. Send the connected frame.
            2. For each text frame: decode, then handle in its own task.
               Undecodable frames are answered with an error frame.
            3. On disconnect, wait for in-flight requests to finish; their
               responses are dropped if the connection is gone.

        Args:
            websocket: Connected WebSocket client.
            path: Request path (unused in v1).
        """
        self._connections.add(websocket)
        logger.info("WsServer: client connected (%d total)", len(self._connections))
        pending: set[asyncio.Task] = set()

        try:
            await self._send(websocket, WsConnected(
                protocol_version=PROTOCOL_VERSION,
                server_time=time.time(),
                unit_name=self._unit_name,
            ))

            async for message in websocket:
                if not isinstance(message, str):
                    await self._send(websocket, WsError(
                        error_code="PROTOCOL_VIOLATION",
                        message="Binary frames are not supported",
                    ))
                    continue

                try:
                    request = decode_client_message(message)
                except ValueError as exc:
                    logger.warning("WsServer: rejected client frame: %s", exc)
                    await self._send(websocket, error_for_decode_failure(exc))
                    continue

                task = asyncio.get_running_loop().create_task(self._respond(websocket, request))
                pending.add(task)
                task.add_done_callback(pending.discard)
        except ConnectionClosed:
            logger.info("WsServer: connection closed unexpectedly")
        except Exception:
            logger.exception("WsServer: error in connection handler")
        finally:
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            self._connections.discard(websocket)
            logger.info("WsServer: client disconnected (%d total)", len(self._connections))

    async def _respond(self, websocket, request: ControlRequest) -> None:
        response = await self._handler.handle(request)
        await self._send(websocket, response)

    async def _send(self, websocket, message: ServerMessage) -> None:
        try:
            await websocket.send(encode_server_message(message))
        except ConnectionClosed:
            logger.debug("WsServer: dropped %s, connection already closed", type(message).__name__)

    def _on_state_change(self, old_state: str, new_state: str) -> None:
        if new_state == "stopping":
            logger.info("WsServer: stopping with %d open connection(s)", len(self._connections))
