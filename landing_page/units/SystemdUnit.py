"""Unit backed by systemd, observed and driven through ``systemctl``.

refresh() rebuilds a UnitInfo snapshot from three calls:
``systemctl status`` (parsed line by line), ``systemctl cat`` (unit file
directives, optional) and ``systemctl is-active`` (the activity flag the
controller consumes).
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from landing_page.errors import BackendIoError
from landing_page.types import ExitStatus
from landing_page.units.Unit import Unit
from landing_page.units.systemctl import Systemctl

logger = logging.getLogger(__name__)

# Leading status glyphs printed by `systemctl status` (active, inactive, failed, reloading)
_STATUS_BULLETS = "●○×*↻ "
_KEY_PREFIX = re.compile(r"^[A-Z][A-Za-z ]*: ")


class UnitType(Enum):
    AUTOMOUNT = "automount"
    MOUNT = "mount"
    SERVICE = "service"
    SCOPE = "scope"
    SOCKET = "socket"
    SLICE = "slice"
    TIMER = "timer"
    PATH = "path"
    TARGET = "target"


class LoadState(Enum):
    MASKED = "masked"
    LOADED = "loaded"


class AutoStartStatus(Enum):
    STATIC = "static"
    ENABLED = "enabled"
    ENABLED_RUNTIME = "enabled-runtime"
    DISABLED = "disabled"
    GENERATED = "generated"
    INDIRECT = "indirect"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class Doc:
    """Documentation reference listed under ``Docs:``.

    Args:
        kind: ``"man"`` for a man page, ``"url"`` for a web page.
        target: Man page name or full URL.
    """

    kind: str
    target: str

    @classmethod
    def parse(cls, descriptor: str) -> "Doc":
        """Parse ``man:sshd(8)`` or ``https://...`` descriptors.

        Raises:
            ValueError: If the descriptor is malformed or of an unknown kind.
        """
        descriptor = descriptor.strip()
        scheme, sep, rest = descriptor.partition(":")
        if not sep or not rest:
            raise ValueError(f"malformed doc descriptor: {descriptor!r}")
        if scheme == "man":
            return cls(kind="man", target=rest.split("(")[0])
        if scheme in ("http", "https"):
            return cls(kind="url", target=f"{scheme}:{rest.strip()}")
        raise ValueError(f"unknown type of doc: {descriptor!r}")


@dataclass
class UnitInfo:
    """Snapshot of a systemd unit as reported by systemctl."""

    full_name: str
    name: str = ""
    utype: UnitType = UnitType.SERVICE
    description: str | None = None
    state: LoadState = LoadState.MASKED
    auto_start: AutoStartStatus = AutoStartStatus.DISABLED
    active: bool = False
    preset: bool = False
    script: str = ""
    transient: bool = False
    restart_policy: str | None = None
    kill_mode: str | None = None
    process: str | None = None
    pid: int | None = None
    cpu: str | None = None
    memory: str | None = None
    mounted: str | None = None
    mountpoint: str | None = None
    docs: list[Doc] = field(default_factory=list)
    wants: list[str] = field(default_factory=list)
    wanted_by: list[str] = field(default_factory=list)
    also: list[str] = field(default_factory=list)
    before: list[str] = field(default_factory=list)
    after: list[str] = field(default_factory=list)
    exec_start: str | None = None
    exec_reload: str | None = None


def parse_status(full_name: str, text: str) -> UnitInfo:
    """Parse ``systemctl status`` output into a UnitInfo.

    Algorithm:
        1. First line: ``● name.type - Description``; the type comes from the
           name's extension.
        2. Remaining lines are matched by their ``Key:`` prefix. Lines without a
           known prefix continue a preceding ``Docs:`` block.

    Raises:
        BackendIoError: If the output is empty or the unit type is not recognised.
    """
    lines = text.splitlines()
    if not lines:
        raise BackendIoError(f"Empty status output for {full_name}")

    info = UnitInfo(full_name=full_name)

    header = lines[0].lstrip(_STATUS_BULLETS)
    name_raw, _, description = header.partition(" - ")
    name_raw = name_raw.strip()
    if description.strip():
        info.description = description.strip()

    name, _, utype_raw = name_raw.rpartition(".")
    if not name:
        raise BackendIoError(f"Unit {name_raw!r} is missing a type")
    try:
        info.utype = UnitType(utype_raw)
    except ValueError as exc:
        raise BackendIoError(f"Unrecognised unit type {utype_raw!r} for {name_raw}") from exc
    info.name = name

    in_docs = False
    for line in lines[1:]:
        line = line.strip()
        if line.startswith("Loaded: "):
            in_docs = False
            _parse_loaded(info, line[len("Loaded: "):])
        elif line.startswith("Transient: "):
            in_docs = False
            info.transient = line[len("Transient: "):] == "yes"
        elif line.startswith("Docs: "):
            in_docs = True
            _append_doc(info, line[len("Docs: "):])
        elif line.startswith("What: "):
            in_docs = False
            info.mounted = line[len("What: "):]
        elif line.startswith("Where: "):
            in_docs = False
            info.mountpoint = line[len("Where: "):]
        elif line.startswith("Main PID: ") or line.startswith("Cntrl PID: "):
            in_docs = False
            _parse_pid(info, line.split(": ", 1)[1])
        elif line.startswith("Memory: "):
            in_docs = False
            info.memory = line[len("Memory: "):].strip()
        elif line.startswith("CPU: "):
            in_docs = False
            info.cpu = line[len("CPU: "):].strip()
        elif _KEY_PREFIX.match(line):
            # Active:, Process:, Tasks:, CGroup: and the like
            in_docs = False
        elif in_docs:
            _append_doc(info, line)

    return info


def _parse_loaded(info: UnitInfo, line: str) -> None:
    """Parse ``loaded (/path/unit.service; enabled; vendor preset: disabled)``."""
    if line.startswith("masked"):
        info.state = LoadState.MASKED
        return
    if not line.startswith("loaded "):
        return

    info.state = LoadState.LOADED
    inner = line[len("loaded "):].strip().removeprefix("(").removesuffix(")")
    items = [item.strip() for item in inner.split(";")]
    info.script = items[0]
    if len(items) > 1:
        try:
            info.auto_start = AutoStartStatus(items[1])
        except ValueError:
            info.auto_start = AutoStartStatus.DISABLED
    if len(items) > 2:
        info.preset = items[2].endswith("enabled")


def _parse_pid(info: UnitInfo, line: str) -> None:
    """Parse ``787 (sshd)``."""
    pid_raw, sep, process = line.partition(" ")
    if not sep:
        return
    try:
        info.pid = int(pid_raw)
    except ValueError:
        info.pid = 0
    info.process = process.replace("(", "").replace(")", "")


def _append_doc(info: UnitInfo, descriptor: str) -> None:
    try:
        info.docs.append(Doc.parse(descriptor))
    except ValueError:
        logger.debug("SystemdUnit: skipping doc entry %r", descriptor)


def apply_unit_file(info: UnitInfo, content: str) -> None:
    """Fold ``Key=Value`` directives from ``systemctl cat`` into ``info``."""
    list_fields = {
        "Wants": info.wants,
        "WantedBy": info.wanted_by,
        "Also": info.also,
        "Before": info.before,
        "After": info.after,
    }
    for line in content.splitlines():
        key, sep, value = line.partition("=")
        if not sep:
            continue
        if key in list_fields:
            list_fields[key].append(value)
        elif key == "ExecStart":
            info.exec_start = value
        elif key == "ExecReload":
            info.exec_reload = value
        elif key == "Restart":
            info.restart_policy = value
        elif key == "KillMode":
            info.kill_mode = value


class SystemdUnit(Unit):
    """Real backend: a systemd unit driven through systemctl.

    Args:
        full_name: Unit name including its type, e.g. ``mc_server.service``.
        systemctl: Command runner; a default Systemctl is created when omitted.
    """

    def __init__(self, full_name: str, systemctl: Systemctl | None = None) -> None:
        self._full_name = full_name
        self._systemctl = systemctl if systemctl is not None else Systemctl()
        self._info = UnitInfo(full_name=full_name)

    @property
    def name(self) -> str:
        return self._full_name

    @property
    def info(self) -> UnitInfo:
        """Snapshot captured by the last refresh()."""
        return self._info

    async def refresh(self) -> None:
        """Rebuild the unit snapshot from systemctl.

        Raises:
            BackendIoError: If the unit does not exist or systemctl fails.
        """
        if not await self._systemctl.exists(self._full_name):
            raise BackendIoError(f'Unit or service "{self._full_name}" does not exist')

        info = parse_status(self._full_name, await self._systemctl.status(self._full_name))

        try:
            apply_unit_file(info, await self._systemctl.cat(self._full_name))
        except BackendIoError as exc:
            logger.debug("SystemdUnit: systemctl cat %s failed: %s", self._full_name, exc)

        info.active = await self._systemctl.is_active(self._full_name)
        self._info = info
        logger.debug("SystemdUnit: refreshed %s active=%s", self._full_name, info.active)

    def is_active(self) -> bool:
        return self._info.active

    async def start(self) -> ExitStatus:
        return await self._systemctl.start(self._full_name)

    async def stop(self) -> ExitStatus:
        return await self._systemctl.stop(self._full_name)

    async def restart(self) -> ExitStatus:
        return await self._systemctl.restart(self._full_name)

    async def reload(self) -> ExitStatus:
        return await self._systemctl.reload(self._full_name)

    async def reload_or_restart(self) -> ExitStatus:
        return await self._systemctl.reload_or_restart(self._full_name)

    async def enable(self) -> ExitStatus:
        return await self._systemctl.enable(self._full_name)

    async def disable(self) -> ExitStatus:
        return await self._systemctl.disable(self._full_name)

    async def isolate(self) -> ExitStatus:
        return await self._systemctl.isolate(self._full_name)

    async def freeze(self) -> ExitStatus:
        return await self._systemctl.freeze(self._full_name)

    async def unfreeze(self) -> ExitStatus:
        return await self._systemctl.unfreeze(self._full_name)

    async def status(self) -> str:
        return await self._systemctl.status(self._full_name)

    async def exists(self) -> bool:
        return await self._systemctl.exists(self._full_name)
