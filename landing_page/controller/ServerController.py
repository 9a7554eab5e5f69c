"""Server lifecycle controller: guarded state machine over one unit.

All reads and writes of the server state happen under a single asyncio.Lock.
Boot and shutdown set their transient state (BOOTING / SHUTDOWN) under the
lock, release it while the external command runs, and re-acquire it only to
commit the outcome. Status queries are therefore answered during a slow
boot or shutdown. An in-flight mark set together with the transient state
makes any second boot or shutdown fail its precondition until the first
command has returned, even if reconciliation has meanwhile promoted
BOOTING -> ON.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

from landing_page.errors import InvalidOperationError, NonzeroExitError
from landing_page.types import ExitStatus, ServerState
from landing_page.units.Unit import Unit

logger = logging.getLogger(__name__)

REFRESH_RATE = 5.0


class ServerStatus:
    """Mutable status record exclusively owned by ServerController.

    Callers must hold the controller lock for every method call.

    Attributes:
        unit: Backend used to query and mutate the external service.
        last_refreshed: Clock value of the last successful reconciliation,
            None before the first one.
        state: Current ServerState.
        in_flight: ``"boot"`` or ``"shutdown"`` while that command is
            outstanding, None otherwise. Reconciliation may promote
            BOOTING -> ON before the start command returns, so the state
            alone does not tell whether a transition is still running.
    """

    def __init__(self, unit: Unit, refresh_rate: float = REFRESH_RATE) -> None:
        self.unit = unit
        self.refresh_rate = refresh_rate
        self.last_refreshed: float | None = None
        self.state = ServerState.UNKNOWN
        self.in_flight: str | None = None

    def _move(self, expected: ServerState, new_state: ServerState) -> None:
        if self.state != expected:
            raise InvalidOperationError(
                f"Invalid server transition: {self.state.name} -> {new_state.name}"
            )
        self.state = new_state

    def begin_boot(self) -> None:
        self._move(ServerState.OFF, ServerState.BOOTING)
        self.in_flight = "boot"

    def complete_boot(self) -> None:
        # BOOTING -> ON is left to reconciliation
        self.in_flight = None

    def abort_boot(self) -> None:
        self.in_flight = None
        if self.state != ServerState.BOOTING:
            logger.warning("ServerStatus: boot failed but state already moved to %s", self.state.name)
            return
        self.state = ServerState.OFF

    def begin_shutdown(self) -> None:
        self._move(ServerState.ON, ServerState.SHUTDOWN)
        self.in_flight = "shutdown"

    def complete_shutdown(self) -> None:
        self.in_flight = None
        self._move(ServerState.SHUTDOWN, ServerState.OFF)

    def abort_shutdown(self) -> None:
        self.in_flight = None
        self._move(ServerState.SHUTDOWN, ServerState.ON)

    async def maybe_update(self, now: float) -> None:
        """Reconcile with the unit unless the last reconciliation is still fresh."""
        if self.last_refreshed is not None and now < self.last_refreshed + self.refresh_rate:
            return
        await self.do_update(now)

    async def do_update(self, now: float) -> None:
        """Refresh the unit and fold its activity into the state.

        Precedence, first match wins:
            1. SHUTDOWN stays SHUTDOWN (only the stop command's result leaves it).
            2. BOOTING with an inactive unit stays BOOTING.
            3. Inactive unit: OFF.
            4. Active unit: ON.

        Raises:
            BackendIoError: If the unit refresh fails; nothing is modified.
        """
        await self.unit.refresh()
        self.last_refreshed = now

        old_state = self.state
        active = self.unit.is_active()
        if old_state == ServerState.SHUTDOWN:
            new_state = ServerState.SHUTDOWN
        elif old_state == ServerState.BOOTING and not active:
            new_state = ServerState.BOOTING
        elif not active:
            new_state = ServerState.OFF
        else:
            new_state = ServerState.ON

        self.state = new_state
        if new_state != old_state:
            logger.info("ServerStatus: %s -> %s (unit active=%s)", old_state.name, new_state.name, active)
        else:
            logger.debug("ServerStatus: reconciled, state %s (unit active=%s)", new_state.name, active)


class ServerController:
    """Mediates every status query and transition request for one unit.

    Constructed once at startup and shared by all connection handlers.

    Args:
        unit: Backend for the managed service.
        refresh_rate: Minimum seconds between reconciliations.
        clock: Monotonic time source.
    """

    def __init__(
        self,
        unit: Unit,
        refresh_rate: float = REFRESH_RATE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._status = ServerStatus(unit, refresh_rate)
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def unit_name(self) -> str:
        return self._status.unit.name

    @property
    def cached_state(self) -> ServerState:
        """Last committed state, without reconciling."""
        return self._status.state

    async def server_state(self) -> ServerState:
        """Return the current state, reconciling first if it is stale.

        Raises:
            BackendIoError: If reconciliation fails.
        """
        async with self._lock:
            await self._status.maybe_update(self._clock())
            return self._status.state

    async def boot_server(self) -> None:
        """Issue a boot; returns once the start command has completed.

        Algorithm:
            1. Under the lock: reconcile if stale, require OFF with no
               transition in flight, set BOOTING.
            2. Without the lock: run the unit's start command.
            3. Re-acquire the lock: clear the in-flight mark on success;
               revert BOOTING -> OFF on a nonzero exit, launch failure or
               cancellation, then raise.

        Raises:
            InvalidOperationError: If the server is not OFF or a transition is in flight.
            NonzeroExitError: If the start command failed.
            BackendIoError: If the unit could not be queried or started.
        """
        async with self._lock:
            await self._status.maybe_update(self._clock())
            self._require(ServerState.OFF, "on")
            self._status.begin_boot()
        logger.info("ServerController: booting %s", self.unit_name)

        await self._run_command(self._status.unit.start, self._status.abort_boot, "boot")
        async with self._lock:
            self._status.complete_boot()

    async def shutdown_server(self) -> None:
        """Issue a shutdown; returns once the stop command has completed.

        Algorithm:
            1. Under the lock: reconcile if stale, require ON with no
               transition in flight, set SHUTDOWN.
            2. Without the lock: run the unit's stop command.
            3. Re-acquire the lock: SHUTDOWN -> OFF on success,
               SHUTDOWN -> ON on a nonzero exit, launch failure or cancellation.

        Raises:
            InvalidOperationError: If the server is not ON or a transition is in flight.
            NonzeroExitError: If the stop command failed.
            BackendIoError: If the unit could not be queried or stopped.
        """
        async with self._lock:
            await self._status.maybe_update(self._clock())
            self._require(ServerState.ON, "off")
            self._status.begin_shutdown()
        logger.info("ServerController: shutting down %s", self.unit_name)

        await self._run_command(self._status.unit.stop, self._status.abort_shutdown, "shutdown")
        async with self._lock:
            self._status.complete_shutdown()
        logger.info("ServerController: %s is off", self.unit_name)

    def _require(self, expected: ServerState, direction: str) -> None:
        state = self._status.state
        if state != expected:
            raise InvalidOperationError(f"Can't turn server {direction} in {state.name} state")
        if self._status.in_flight is not None:
            raise InvalidOperationError(
                f"Can't turn server {direction} while {self._status.in_flight} is in progress"
            )

    async def _run_command(
        self,
        command: Callable[[], Awaitable[ExitStatus]],
        revert: Callable[[], None],
        operation: str,
    ) -> ExitStatus:
        """Run a unit command with the lock released; revert the transition if it fails.

        Cancellation is treated like a launch failure so the transient
        state never outlives the request that set it.
        """
        try:
            exit_status = await command()
        except BaseException as exc:
            logger.warning("ServerController: %s of %s failed: %r", operation, self.unit_name, exc)
            async with self._lock:
                revert()
            raise

        if not exit_status.success:
            async with self._lock:
                revert()
            logger.warning("ServerController: %s of %s aborted, %s", operation, self.unit_name, exit_status)
            raise NonzeroExitError(exit_status)
        return exit_status
