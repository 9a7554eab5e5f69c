"""Unit backend capability consumed by the lifecycle controller.

A unit is the external service being started and stopped. The controller only
relies on name / refresh / is_active / start / stop; the remaining operations
mirror the systemctl verb set and default to NotImplementedError so a
simulated backend need not provide them.
"""

from abc import ABC, abstractmethod

from landing_page.types import ExitStatus


class Unit(ABC):
    """Capability through which the controller observes and mutates one unit.

    Implementations raise BackendIoError when the external system cannot be
    queried or a command cannot be launched.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier of the managed unit."""

    @abstractmethod
    async def refresh(self) -> None:
        """Re-read authoritative status from the external system."""

    @abstractmethod
    def is_active(self) -> bool:
        """Return the activity flag captured by the last refresh()."""

    @abstractmethod
    async def start(self) -> ExitStatus:
        """Issue the start operation and return its exit status."""

    @abstractmethod
    async def stop(self) -> ExitStatus:
        """Issue the stop operation and return its exit status."""

    async def restart(self) -> ExitStatus:
        raise NotImplementedError(f"{type(self).__name__} does not support restart")

    async def reload(self) -> ExitStatus:
        raise NotImplementedError(f"{type(self).__name__} does not support reload")

    async def reload_or_restart(self) -> ExitStatus:
        raise NotImplementedError(f"{type(self).__name__} does not support reload_or_restart")

    async def enable(self) -> ExitStatus:
        """Enable the unit to start at boot."""
        raise NotImplementedError(f"{type(self).__name__} does not support enable")

    async def disable(self) -> ExitStatus:
        """Disable the unit from starting at boot."""
        raise NotImplementedError(f"{type(self).__name__} does not support disable")

    async def isolate(self) -> ExitStatus:
        """Stop every other unit except this one and its dependencies."""
        raise NotImplementedError(f"{type(self).__name__} does not support isolate")

    async def freeze(self) -> ExitStatus:
        raise NotImplementedError(f"{type(self).__name__} does not support freeze")

    async def unfreeze(self) -> ExitStatus:
        raise NotImplementedError(f"{type(self).__name__} does not support unfreeze")

    async def status(self) -> str:
        """Return the verbose status text for the unit."""
        raise NotImplementedError(f"{type(self).__name__} does not support status")

    async def exists(self) -> bool:
        """Return True if the unit is known to the service manager."""
        raise NotImplementedError(f"{type(self).__name__} does not support exists")
