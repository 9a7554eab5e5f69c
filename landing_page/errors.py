"""Error taxonomy for server lifecycle control.

Every failure the controller reports derives from ControllerError so the
control protocol layer can turn it into an internal-error response.
"""

from landing_page.types import ExitStatus


class ControllerError(Exception):
    """Base class for errors surfaced by the lifecycle controller."""


class InvalidOperationError(ControllerError):
    """The requested transition's precondition state was not met."""


class NonzeroExitError(ControllerError):
    """The external start/stop command ran but reported failure.

    Args:
        exit_status: Exit status reported by the command.
    """

    def __init__(self, exit_status: ExitStatus) -> None:
        super().__init__(f"Nonzero exit: {exit_status}")
        self.exit_status = exit_status


class BackendIoError(ControllerError):
    """The unit could not be queried or the command could not be launched."""
