"""Type definitions shared by the controller, the unit backends and the wire protocol."""

from dataclasses import dataclass
from enum import Enum


class ServerState(Enum):
    """Lifecycle states of the managed game server.

    State Transitions:
    - UNKNOWN: Initial value, before the first reconciliation
    - OFF: Unit inactive, boot may be requested
    - BOOTING: Start command issued, waiting for the unit to report active
    - ON: Unit active, shutdown may be requested
    - SHUTDOWN: Stop command in flight

    Transition Rules:
    OFF → BOOTING: boot_server()
    BOOTING → ON: Reconciliation observes the unit active
    BOOTING → OFF: Start command failed
    ON → SHUTDOWN: shutdown_server()
    SHUTDOWN → OFF: Stop command completed
    SHUTDOWN → ON: Stop command failed

    Values are the lowercase names used on the wire.
    """
    UNKNOWN = "unknown"
    OFF = "off"
    BOOTING = "booting"
    ON = "on"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True)
class ExitStatus:
    """Outcome of an external unit command.

    Exactly one of ``code`` and ``signal`` is set for a finished process.

    Args:
        code: Process exit code, or None when the process was killed by a signal.
        signal: Terminating signal number, or None for a normal exit.
    """

    code: int | None = 0
    signal: int | None = None

    @property
    def success(self) -> bool:
        return self.code == 0

    @classmethod
    def from_returncode(cls, returncode: int) -> "ExitStatus":
        """Build from an asyncio subprocess returncode (negative means killed by signal)."""
        if returncode < 0:
            return cls(code=None, signal=-returncode)
        return cls(code=returncode)

    def __str__(self) -> str:
        if self.code is not None:
            return f"exit status: {self.code}"
        return f"signal: {self.signal}"
