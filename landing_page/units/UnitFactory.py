"""Selects the unit backend once at startup from configuration."""

import logging
from typing import TYPE_CHECKING

from landing_page.units.SimUnit import SimUnit
from landing_page.units.SystemdUnit import SystemdUnit
from landing_page.units.Unit import Unit
from landing_page.units.systemctl import Systemctl

if TYPE_CHECKING:
    from landing_page.ServerConfig import ServerConfig

logger = logging.getLogger(__name__)


def create_unit(config: "ServerConfig") -> Unit:
    """Build the unit backend named by ``config.backend``.

    Args:
        config: Loaded server configuration.

    Returns:
        SimUnit for ``"sim"``, SystemdUnit for ``"systemctl"``.

    Raises:
        ValueError: For any other backend name.
    """
    if config.backend == "sim":
        logger.info("UnitFactory: using simulated unit %s (op_delay=%ss)", config.unit_name, config.sim_op_delay)
        return SimUnit(config.unit_name, op_delay=config.sim_op_delay)

    if config.backend == "systemctl":
        systemctl = Systemctl(config.systemctl_path)
        logger.info("UnitFactory: using systemd unit %s via %s", config.unit_name, systemctl.path)
        return SystemdUnit(config.unit_name, systemctl=systemctl)

    raise ValueError(f"Unknown unit backend: {config.backend!r} (must be 'sim' or 'systemctl')")
