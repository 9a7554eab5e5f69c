# landing_page/__init__.py
from .types import ExitStatus, ServerState
from .errors import (
    BackendIoError,
    ControllerError,
    InvalidOperationError,
    NonzeroExitError,
)

__all__ = [
    'ExitStatus',
    'ServerState',
    'ControllerError',
    'InvalidOperationError',
    'NonzeroExitError',
    'BackendIoError',
]
