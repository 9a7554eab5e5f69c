"""Async wrapper around the ``systemctl`` command-line tool.

Each call spawns one ``systemctl`` process. Plain commands report only their
exit status; capturing commands read stdout and map systemctl's documented
exit codes onto BackendIoError.
"""

import asyncio
import logging
import os
from dataclasses import dataclass

from landing_page.errors import BackendIoError
from landing_page.types import ExitStatus

logger = logging.getLogger(__name__)

SYSTEMCTL_PATH = "/usr/bin/systemctl"

# 1: unit not found, 3: unit inactive/dead; both still produce usable output
_CAPTURE_OK_CODES = {0, 1, 3}
_CAPTURE_NO_PERMISSION_CODE = 4


@dataclass(frozen=True)
class UnitFileEntry:
    """One row of ``systemctl list-unit-files``.

    Args:
        unit_file: Unit file name (``name.type``).
        state: Enablement state, e.g. ``enabled`` or ``static``.
        vendor_preset: True/False for enabled/disabled presets, None when absent.
    """

    unit_file: str
    state: str
    vendor_preset: bool | None


def resolve_systemctl_path(configured: str | None = None) -> str:
    """Pick the systemctl binary: configuration, then $SYSTEMCTL_PATH, then the default."""
    if configured:
        return configured
    return os.environ.get("SYSTEMCTL_PATH", SYSTEMCTL_PATH)


class Systemctl:
    """Invokes ``systemctl`` verbs as asyncio subprocesses.

    Args:
        path: Path to the systemctl binary; see resolve_systemctl_path().
    """

    def __init__(self, path: str | None = None) -> None:
        self._path = resolve_systemctl_path(path)

    @property
    def path(self) -> str:
        return self._path

    async def _spawn(self, args: list[str], capture: bool) -> asyncio.subprocess.Process:
        logger.debug("Systemctl: %s %s", self._path, " ".join(args))
        try:
            return await asyncio.create_subprocess_exec(
                self._path,
                *args,
                stdout=asyncio.subprocess.PIPE if capture else asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            raise BackendIoError(f"Failed to launch {self._path}: {exc}") from exc

    async def run(self, args: list[str]) -> ExitStatus:
        """Invoke ``systemctl <args>`` silently.

        Returns:
            Exit status of the process.

        Raises:
            BackendIoError: If the process could not be spawned.
        """
        process = await self._spawn(args, capture=False)
        returncode = await process.wait()
        return ExitStatus.from_returncode(returncode)

    async def capture(self, args: list[str]) -> str:
        """Invoke ``systemctl <args>`` and return its stdout.

        Algorithm:
            1. Spawn with stdout piped and wait for exit.
            2. Accept exit codes 0, 1 and 3; reject 4 (privileges / unknown unit),
               any other code, and termination by signal.
            3. Decode stdout as UTF-8; empty output is an error.

        Raises:
            BackendIoError: On spawn failure, a rejected exit, or unusable output.
        """
        process = await self._spawn(args, capture=True)
        stdout, _ = await process.communicate()
        returncode = process.returncode

        if returncode is None or returncode < 0:
            raise BackendIoError("Process terminated by signal")
        if returncode == _CAPTURE_NO_PERMISSION_CODE:
            raise BackendIoError("Missing privileges or unit not found")
        if returncode not in _CAPTURE_OK_CODES:
            raise BackendIoError(f"Process exited with code: {returncode}")

        if not stdout:
            raise BackendIoError("systemctl stdout empty")
        try:
            return stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BackendIoError("Invalid utf8 data in stdout") from exc

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    async def start(self, unit: str) -> ExitStatus:
        return await self.run(["start", unit])

    async def stop(self, unit: str) -> ExitStatus:
        return await self.run(["stop", unit])

    async def restart(self, unit: str) -> ExitStatus:
        return await self.run(["restart", unit])

    async def reload(self, unit: str) -> ExitStatus:
        return await self.run(["reload", unit])

    async def reload_or_restart(self, unit: str) -> ExitStatus:
        return await self.run(["reload-or-restart", unit])

    async def enable(self, unit: str) -> ExitStatus:
        return await self.run(["enable", unit])

    async def disable(self, unit: str) -> ExitStatus:
        return await self.run(["disable", unit])

    async def isolate(self, unit: str) -> ExitStatus:
        return await self.run(["isolate", unit])

    async def freeze(self, unit: str) -> ExitStatus:
        return await self.run(["freeze", unit])

    async def unfreeze(self, unit: str) -> ExitStatus:
        return await self.run(["thaw", unit])

    async def status(self, unit: str) -> str:
        """Return the raw ``systemctl status`` text."""
        return await self.capture(["status", unit])

    async def cat(self, unit: str) -> str:
        """Return the unit file contents as printed by ``systemctl cat``."""
        return await self.capture(["cat", unit])

    async def is_active(self, unit: str) -> bool:
        output = await self.capture(["is-active", unit])
        return output.rstrip() == "active"

    # ------------------------------------------------------------------
    # Unit file listing
    # ------------------------------------------------------------------

    async def list_unit_files(
        self,
        type_filter: str | None = None,
        state_filter: str | None = None,
        glob: str | None = None,
    ) -> list[UnitFileEntry]:
        """List unit files, optionally filtered by ``--type``, ``--state`` and a name glob.

        Header and footer lines are skipped: only lines containing a ``.`` and
        not ending with one describe a unit file.
        """
        args = ["list-unit-files"]
        if type_filter is not None:
            args += ["--type", type_filter]
        if state_filter is not None:
            args += ["--state", state_filter]
        if glob is not None:
            args.append(glob)

        content = await self.capture(args)
        return parse_unit_file_list(content)

    async def list_units(
        self,
        type_filter: str | None = None,
        state_filter: str | None = None,
        glob: str | None = None,
    ) -> list[str]:
        entries = await self.list_unit_files(type_filter, state_filter, glob)
        return [entry.unit_file for entry in entries]

    async def exists(self, unit: str) -> bool:
        """Return True if a unit file matching ``unit`` is installed."""
        units = await self.list_units(glob=unit)
        return bool(units)

    async def list_enabled_services(self) -> list[str]:
        return await self.list_units(type_filter="service", state_filter="enabled")

    async def list_disabled_services(self) -> list[str]:
        return await self.list_units(type_filter="service", state_filter="disabled")


def parse_unit_file_list(content: str) -> list[UnitFileEntry]:
    """Parse ``systemctl list-unit-files`` output into entries."""
    entries: list[UnitFileEntry] = []
    for line in content.splitlines():
        line = line.strip()
        if "." not in line or line.endswith("."):
            continue
        fields = line.split()
        if len(fields) < 2:
            continue
        preset = fields[2] if len(fields) > 2 else "-"
        if preset == "enabled":
            vendor_preset: bool | None = True
        elif preset == "disabled":
            vendor_preset = False
        else:
            vendor_preset = None
        entries.append(UnitFileEntry(unit_file=fields[0], state=fields[1], vendor_preset=vendor_preset))
    return entries
