"""Simulated unit: a stand-in game server with a fixed operation delay.

Used in development (no systemd required) and by the controller tests.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

from landing_page.errors import InvalidOperationError
from landing_page.types import ExitStatus, ServerState
from landing_page.units.Unit import Unit

logger = logging.getLogger(__name__)

DEFAULT_OP_DELAY = 5.0


class SimUnit(Unit):
    """Unit whose boot and shutdown each take ``op_delay`` seconds.

    start() returns as soon as the boot has begun; the boot is observed as
    complete by the first refresh() at least ``op_delay`` seconds later.
    stop() waits out the delay itself and returns once the unit is off.

    Args:
        name: Unit name reported to clients.
        op_delay: Seconds a boot or shutdown takes.
        clock: Monotonic time source.
        sleep: Coroutine function used to wait out a shutdown.
    """

    def __init__(
        self,
        name: str,
        op_delay: float = DEFAULT_OP_DELAY,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._name = name
        self._op_delay = op_delay
        self._clock = clock
        self._sleep = sleep
        self._state = ServerState.OFF
        self._last_update = clock()

    @property
    def name(self) -> str:
        return self._name

    async def refresh(self) -> None:
        if self._clock() < self._last_update + self._op_delay:
            return
        if self._state == ServerState.BOOTING:
            self._state = ServerState.ON
            logger.debug("SimUnit: %s finished booting", self._name)
        elif self._state == ServerState.SHUTDOWN:
            self._state = ServerState.OFF
            logger.debug("SimUnit: %s finished shutting down", self._name)

    def is_active(self) -> bool:
        return self._state == ServerState.ON

    async def start(self) -> ExitStatus:
        if self._state != ServerState.OFF:
            raise InvalidOperationError(f"Server is not in Off state: {self._state.name}")
        self._state = ServerState.BOOTING
        self._last_update = self._clock()
        return ExitStatus(code=0)

    async def stop(self) -> ExitStatus:
        if self._state != ServerState.ON:
            raise InvalidOperationError(f"Server is not in On state: {self._state.name}")
        self._state = ServerState.SHUTDOWN
        self._last_update = self._clock()
        await self._sleep(self._op_delay)
        self._state = ServerState.OFF
        return ExitStatus(code=0)

    async def status(self) -> str:
        return f"{self._name} (simulated): {self._state.value}"

    async def exists(self) -> bool:
        return True
