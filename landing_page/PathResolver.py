# PathResolver.py
"""
Locates the server's config and log directories.

Development mode runs from a source checkout and keeps config/ and logs/ next
to the entry script. Configured mode is selected by LANDING_PAGE_HOME (set in
the systemd unit that runs the site) and keeps writable state under that
directory, seeded from the bundled config/ on first run.
"""
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

HOME_ENV_VAR = "LANDING_PAGE_HOME"

PathMode = Literal["development", "configured"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedPaths:
    """Directories the server reads from and writes to.

    app_dir holds the bundled read-only files; root_dir is where config/ and
    logs/ live. They are the same directory in development mode.
    """
    app_dir: Path
    root_dir: Path
    config_dir: Path
    logs_dir: Path
    environment: PathMode


class PathResolver:
    """
    Resolves server paths once, at construction.

    Args:
        script_path: Location of the entry script; its directory is app_dir.
    """

    def __init__(self, script_path: Path):
        app_dir = script_path.resolve().parent
        home = os.environ.get(HOME_ENV_VAR)
        mode: PathMode = "configured" if home else "development"
        root_dir = Path(home) if home else app_dir

        self._paths = ResolvedPaths(
            app_dir=app_dir,
            root_dir=root_dir,
            config_dir=root_dir / "config",
            logs_dir=root_dir / "logs",
            environment=mode,
        )

    @property
    def paths(self) -> ResolvedPaths:
        return self._paths

    @property
    def mode(self) -> PathMode:
        return self._paths.environment

    def get_config_path(self, config_name: str) -> Path:
        """Path of a file inside the writable config directory."""
        return self._paths.config_dir / config_name

    def ensure_local_dir_structure(self) -> list[str]:
        """
        Creates config/ and logs/ under root_dir and, in configured mode,
        seeds config/ with bundled files that are not there yet.

        Returns:
            Names of the config files copied in.
        """
        self._paths.config_dir.mkdir(parents=True, exist_ok=True)
        self._paths.logs_dir.mkdir(parents=True, exist_ok=True)
        if self.mode == "configured":
            return self._seed_config()
        return []

    def _seed_config(self) -> list[str]:
        bundled_dir = self._paths.app_dir / "config"
        if not bundled_dir.is_dir():
            return []

        copied = []
        for source in sorted(bundled_dir.glob("*.json")):
            target = self.get_config_path(source.name)
            if target.exists():
                continue
            shutil.copy2(source, target)
            copied.append(source.name)
            logger.info("PathResolver: seeded %s into %s", source.name, self._paths.config_dir)
        return copied
