# landing_page/LoggingSetup.py
import sys
import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler

LOG_FILE_NAME = "landing_page.log"
LOG_FORMAT = '[%(asctime)s] [%(levelname)s] %(message)s'
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def setup_logging(logs_dir: Path, verbose: bool = False, console: bool = True) -> None:
    """
    Configure root logging for the server process.

    Replaces any existing root handlers with a rotating landing_page.log and,
    unless disabled, a stdout mirror. Under systemd the journal already
    captures stdout, so server.py turns the mirror off when not on a TTY.

    Args:
        logs_dir: Directory to store log files (created if missing)
        verbose: If True, set DEBUG level; otherwise INFO
        console: If True, also log to stdout
    """
    logs_dir.mkdir(parents=True, exist_ok=True)
    level = logging.DEBUG if verbose else logging.INFO

    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            logs_dir / LOG_FILE_NAME,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding='utf-8'
        )
    ]
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    # websockets logs every handshake at INFO
    logging.getLogger("websockets").setLevel(logging.DEBUG if verbose else logging.WARNING)

    logging.info("Logging initialized: level=%s, console=%s, file=%s",
                 logging.getLevelName(level), console, logs_dir / LOG_FILE_NAME)
