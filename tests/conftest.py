# tests/conftest.py
import asyncio

import pytest


class FakeClock:
    """Manually advanced monotonic clock.

    ``now`` is passed wherever a ``clock`` callable is expected; ``sleep`` is a
    drop-in for asyncio.sleep that advances time instantly and yields once.
    """

    def __init__(self, start: float = 1000.0) -> None:
        self.time = start

    def now(self) -> float:
        return self.time

    def advance(self, seconds: float) -> None:
        self.time += seconds

    async def sleep(self, seconds: float) -> None:
        self.time += seconds
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    """Fake clock starting at t=1000s.

    Returns:
        FakeClock: Advance with clock.advance(seconds).
    """
    return FakeClock()
