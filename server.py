#!/usr/bin/env python3
"""
Landing page – game server control endpoint
Serves the websocket control channel that lets the site query, boot and
shut down the managed game server unit.

Usage:
    python server.py [--config PATH] [--host HOST] [--port PORT] [--prod] [-v]
"""

import argparse
import dataclasses
import logging
import signal
import sys
import threading
from pathlib import Path

# ---------------------------------------------------------------------
# Path bootstrap
# ---------------------------------------------------------------------

SCRIPT_PATH = Path(__file__).resolve()
if str(SCRIPT_PATH.parent) not in sys.path:
    sys.path.insert(0, str(SCRIPT_PATH.parent))

from landing_page.LoggingSetup import setup_logging
from landing_page.PathResolver import PathResolver
from landing_page.ServerConfig import CONFIG_FILE_NAME, ServerConfig, load_config
from landing_page.server.ServerApp import ServerApp

logger = logging.getLogger("LandingPageServer")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Game server control endpoint for the landing page',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help=f'Path to {CONFIG_FILE_NAME} (default: <config dir>/{CONFIG_FILE_NAME})'
    )
    parser.add_argument('--host', default=None, help='Interface to bind (overrides config)')
    parser.add_argument('--port', type=int, default=None, help='Port to bind (overrides config)')
    parser.add_argument(
        '--prod',
        action='store_true',
        help='Control the real systemd unit instead of the simulated one'
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable DEBUG logging')
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace, path_resolver: PathResolver) -> ServerConfig:
    """Load the config file and apply command-line overrides."""
    config_path = args.config or path_resolver.get_config_path(CONFIG_FILE_NAME)
    config = load_config(config_path)

    overrides = {}
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.prod:
        overrides["backend"] = "systemctl"
    return dataclasses.replace(config, **overrides)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    path_resolver = PathResolver(SCRIPT_PATH)
    seeded = path_resolver.ensure_local_dir_structure()
    paths = path_resolver.paths

    setup_logging(paths.logs_dir, verbose=args.verbose, console=sys.stdout.isatty())
    logger.info("Starting control server (%s mode)", path_resolver.mode)
    if seeded:
        logger.info("Copied bundled config into %s: %s", paths.config_dir, ", ".join(seeded))

    try:
        config = build_config(args, path_resolver)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    try:
        app = ServerApp(config)
        app.start()
    except OSError as exc:
        # covers TLS files that cannot be loaded as well as bind failures
        logger.error("Failed to start on %s:%s: %s", config.host, config.port, exc)
        return 1

    stop_requested = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: stop_requested.set())

    try:
        stop_requested.wait()
    except KeyboardInterrupt:
        logger.info("Shutdown requested")
    finally:
        app.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
