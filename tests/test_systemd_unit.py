"""Tests for SystemdUnit and its systemctl output parsers.

Strategy: parse captured systemctl output directly; drive SystemdUnit with a
MagicMock Systemctl whose coroutine methods are AsyncMocks.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from landing_page.errors import BackendIoError
from landing_page.types import ExitStatus
from landing_page.units.SystemdUnit import (
    AutoStartStatus,
    Doc,
    LoadState,
    SystemdUnit,
    UnitInfo,
    UnitType,
    apply_unit_file,
    parse_status,
)

_SSH_STATUS = """\
● ssh.service - OpenBSD Secure Shell server
     Loaded: loaded (/lib/systemd/system/ssh.service; enabled; vendor preset: enabled)
     Active: active (running) since Mon 2024-01-08 10:00:00 UTC; 2 days ago
       Docs: man:sshd(8)
             man:sshd_config(5)
             https://www.openssh.com/
   Main PID: 787 (sshd)
      Tasks: 1 (limit: 4915)
     Memory: 5.6M
        CPU: 1.234s
     CGroup: /system.slice/ssh.service
             └─787 "sshd: /usr/sbin/sshd -D [listener] 0 of 10-100 startups"
"""

_MC_STATUS = """\
○ mc_server.service - Minecraft server
     Loaded: loaded (/etc/systemd/system/mc_server.service; disabled; vendor preset: disabled)
     Active: inactive (dead)
"""

_MC_UNIT_FILE = """\
# /etc/systemd/system/mc_server.service
[Unit]
Description=Minecraft server
After=network.target
Wants=network-online.target

[Service]
ExecStart=/usr/bin/java -jar server.jar nogui
ExecReload=/bin/kill -HUP $MAINPID
Restart=on-failure
KillMode=mixed

[Install]
WantedBy=multi-user.target
"""


def _make_systemctl(active: bool = False, exists: bool = True, status: str = _MC_STATUS) -> MagicMock:
    systemctl = MagicMock()
    systemctl.exists = AsyncMock(return_value=exists)
    systemctl.status = AsyncMock(return_value=status)
    systemctl.cat = AsyncMock(return_value=_MC_UNIT_FILE)
    systemctl.is_active = AsyncMock(return_value=active)
    systemctl.start = AsyncMock(return_value=ExitStatus(code=0))
    systemctl.stop = AsyncMock(return_value=ExitStatus(code=1))
    systemctl.unfreeze = AsyncMock(return_value=ExitStatus(code=0))
    return systemctl


# ---------------------------------------------------------------------------
# parse_status
# ---------------------------------------------------------------------------

class TestParseStatus:
    def test_header_fields(self) -> None:
        info = parse_status("ssh.service", _SSH_STATUS)
        assert info.name == "ssh"
        assert info.utype == UnitType.SERVICE
        assert info.description == "OpenBSD Secure Shell server"

    def test_loaded_line(self) -> None:
        info = parse_status("ssh.service", _SSH_STATUS)
        assert info.state == LoadState.LOADED
        assert info.script == "/lib/systemd/system/ssh.service"
        assert info.auto_start == AutoStartStatus.ENABLED
        assert info.preset is True

    def test_multi_line_docs(self) -> None:
        info = parse_status("ssh.service", _SSH_STATUS)
        assert info.docs == [
            Doc("man", "sshd"),
            Doc("man", "sshd_config"),
            Doc("url", "https://www.openssh.com/"),
        ]

    def test_process_and_resources(self) -> None:
        info = parse_status("ssh.service", _SSH_STATUS)
        assert info.pid == 787
        assert info.process == "sshd"
        assert info.memory == "5.6M"
        assert info.cpu == "1.234s"

    def test_inactive_unit_without_optional_fields(self) -> None:
        info = parse_status("mc_server.service", _MC_STATUS)
        assert info.auto_start == AutoStartStatus.DISABLED
        assert info.preset is False
        assert info.pid is None
        assert info.docs == []

    def test_masked_unit(self) -> None:
        text = "○ old.service\n     Loaded: masked (Reason: Unit old.service is masked.)\n"
        info = parse_status("old.service", text)
        assert info.state == LoadState.MASKED
        assert info.description is None

    def test_mount_what_where(self) -> None:
        text = (
            "● home.mount - /home\n"
            "     Loaded: loaded (/etc/fstab; generated)\n"
            "      Where: /home\n"
            "       What: /dev/sda2\n"
        )
        info = parse_status("home.mount", text)
        assert info.utype == UnitType.MOUNT
        assert info.auto_start == AutoStartStatus.GENERATED
        assert info.mountpoint == "/home"
        assert info.mounted == "/dev/sda2"

    def test_transient_flag(self) -> None:
        text = "● run-u1.scope\n  Transient: yes\n"
        assert parse_status("run-u1.scope", text).transient is True

    def test_unknown_type_is_backend_error(self) -> None:
        with pytest.raises(BackendIoError, match="Unrecognised unit type"):
            parse_status("x.bogus", "● x.bogus - nope\n")

    def test_missing_type_is_backend_error(self) -> None:
        with pytest.raises(BackendIoError, match="missing a type"):
            parse_status("noext", "● noext - nope\n")

    def test_empty_output_is_backend_error(self) -> None:
        with pytest.raises(BackendIoError):
            parse_status("x.service", "")


class TestDoc:
    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValueError, match="unknown type of doc"):
            Doc.parse("info:coreutils")

    def test_malformed_rejected(self) -> None:
        with pytest.raises(ValueError, match="malformed"):
            Doc.parse("nothing-here")


class TestApplyUnitFile:
    def test_directives_folded_into_info(self) -> None:
        info = UnitInfo(full_name="mc_server.service")
        apply_unit_file(info, _MC_UNIT_FILE)
        assert info.after == ["network.target"]
        assert info.wants == ["network-online.target"]
        assert info.wanted_by == ["multi-user.target"]
        assert info.exec_start == "/usr/bin/java -jar server.jar nogui"
        assert info.exec_reload == "/bin/kill -HUP $MAINPID"
        assert info.restart_policy == "on-failure"
        assert info.kill_mode == "mixed"


# ---------------------------------------------------------------------------
# SystemdUnit
# ---------------------------------------------------------------------------

class TestSystemdUnitRefresh:
    def test_refresh_captures_activity(self) -> None:
        unit = SystemdUnit("mc_server.service", systemctl=_make_systemctl(active=True))
        asyncio.run(unit.refresh())
        assert unit.is_active() is True
        assert unit.info.description == "Minecraft server"
        assert unit.info.exec_start == "/usr/bin/java -jar server.jar nogui"

    def test_inactive_before_first_refresh(self) -> None:
        unit = SystemdUnit("mc_server.service", systemctl=_make_systemctl(active=True))
        assert unit.is_active() is False

    def test_missing_unit_raises(self) -> None:
        unit = SystemdUnit("mc_server.service", systemctl=_make_systemctl(exists=False))
        with pytest.raises(BackendIoError, match="does not exist"):
            asyncio.run(unit.refresh())

    def test_cat_failure_is_tolerated(self) -> None:
        systemctl = _make_systemctl(active=True)
        systemctl.cat = AsyncMock(side_effect=BackendIoError("Missing privileges or unit not found"))
        unit = SystemdUnit("mc_server.service", systemctl=systemctl)
        asyncio.run(unit.refresh())
        assert unit.is_active() is True
        assert unit.info.exec_start is None

    def test_status_failure_keeps_previous_snapshot(self) -> None:
        systemctl = _make_systemctl(active=True)
        unit = SystemdUnit("mc_server.service", systemctl=systemctl)
        asyncio.run(unit.refresh())

        systemctl.status = AsyncMock(side_effect=BackendIoError("systemctl stdout empty"))
        systemctl.is_active = AsyncMock(return_value=False)
        with pytest.raises(BackendIoError):
            asyncio.run(unit.refresh())
        assert unit.is_active() is True


class TestSystemdUnitCommands:
    def test_start_delegates_to_systemctl(self) -> None:
        systemctl = _make_systemctl()
        unit = SystemdUnit("mc_server.service", systemctl=systemctl)
        assert asyncio.run(unit.start()) == ExitStatus(code=0)
        systemctl.start.assert_awaited_once_with("mc_server.service")

    def test_stop_returns_nonzero_status_unchanged(self) -> None:
        unit = SystemdUnit("mc_server.service", systemctl=_make_systemctl())
        assert asyncio.run(unit.stop()) == ExitStatus(code=1)

    def test_unfreeze_delegates(self) -> None:
        systemctl = _make_systemctl()
        unit = SystemdUnit("mc_server.service", systemctl=systemctl)
        asyncio.run(unit.unfreeze())
        systemctl.unfreeze.assert_awaited_once_with("mc_server.service")

    def test_name_is_full_unit_name(self) -> None:
        assert SystemdUnit("mc_server.service", systemctl=_make_systemctl()).name == "mc_server.service"
