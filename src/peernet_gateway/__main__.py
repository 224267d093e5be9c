"""
Peernet web gateway CLI entry point.

Serve files and blockchains of Peernet peers over plain HTTP(S) URLs.

Usage::

    python -m peernet_gateway --config Config.yaml
    python -m peernet_gateway --config Config.yaml --backend mypackage.network:create_backend

Options:
    --config     Path to the YAML configuration file (default: Config.yaml)
    --backend    Backend factory as "module:callable" (default: in-memory backend)
    -v           Enable debug logging
    --no-color   Disable colored logging output
"""

from __future__ import annotations

import argparse
import asyncio
import importlib
import inspect
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final

import yaml
from pydantic import ValidationError

from peernet_gateway import __version__
from peernet_gateway.config import GatewayConfig
from peernet_gateway.router import GatewayRouter
from peernet_gateway.server import GatewayServer

if TYPE_CHECKING:
    from peernet_gateway.backend import Backend

APP_NAME: Final = "Peernet Web Gateway"
"""Application name, first half of the user agent."""

USER_AGENT: Final = f"{APP_NAME}/{__version__}"
"""User agent handed to the backend."""

DEFAULT_CONFIG_FILE: Final = "Config.yaml"
"""Configuration file read when --config is not given."""

DEFAULT_BACKEND: Final = "peernet_gateway.backend:MemoryBackend"
"""Backend used when --backend is not given."""

EXIT_CONFIG_ACCESS: Final = 2
"""The configuration file cannot be opened or read."""

EXIT_CONFIG_PARSE: Final = 3
"""The configuration file is not valid YAML."""

EXIT_CONFIG_INVALID: Final = 4
"""The configuration values fail validation."""

EXIT_BACKEND: Final = 5
"""The backend cannot be created."""

logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    # ANSI color codes
    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        timestamp = f"{self.CYAN}{self.formatTime(record, self.datefmt)}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"
        return f"{timestamp} {levelname} {name}: {record.getMessage()}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure logging for the gateway with optional colors."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def load_config(path: Path) -> GatewayConfig:
    """
    Load the gateway configuration, exiting with a distinct code on failure.

    Operators see which step failed: access, YAML syntax or validation.
    """
    try:
        return GatewayConfig.from_yaml_file(path)
    except OSError as e:
        print(f"Error accessing config file '{path}': {e}", file=sys.stderr)
        raise SystemExit(EXIT_CONFIG_ACCESS) from e
    except yaml.YAMLError as e:
        print(
            f"Error parsing config file '{path}' (make sure it is valid YAML format): {e}",
            file=sys.stderr,
        )
        raise SystemExit(EXIT_CONFIG_PARSE) from e
    except ValidationError as e:
        print(f"Invalid settings in config file '{path}': {e}", file=sys.stderr)
        raise SystemExit(EXIT_CONFIG_INVALID) from e


def load_backend(reference: str) -> Backend:
    """
    Create the backend from a "module:callable" factory reference.

    The factory is called with the gateway user agent when it accepts a
    `user_agent` keyword, and without arguments otherwise.

    Raises:
        ValueError: If the reference is malformed or cannot be resolved.
    """
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Backend must be given as 'module:callable', got '{reference}'")

    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ValueError(f"Cannot load backend '{reference}': {e}") from e

    if "user_agent" in inspect.signature(factory).parameters:
        return factory(user_agent=USER_AGENT)
    return factory()


async def run_gateway(config: GatewayConfig, backend: Backend) -> None:
    """
    Run the web gateway until interrupted.

    Args:
        config: Loaded gateway configuration.
        backend: Network collaborator, created before any listener starts.
    """
    router = GatewayRouter(backend=backend, web_files=config.web_files_path)
    server = GatewayServer(
        router=router,
        listeners=config.listeners(),
        redirect_host=config.redirect_80,
    )

    logger.info("%s starting with %d listener(s)", USER_AGENT, len(server.listeners))
    await server.run()


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description=APP_NAME,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(DEFAULT_CONFIG_FILE),
        help=f"Path to the YAML configuration file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "--backend",
        default=DEFAULT_BACKEND,
        help="Backend factory as 'module:callable' (default: in-memory backend)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )

    args = parser.parse_args()

    setup_logging(args.verbose, args.no_color)

    config = load_config(args.config)

    try:
        backend = load_backend(args.backend)
    except ValueError as e:
        logger.error("%s", e)
        raise SystemExit(EXIT_BACKEND) from e

    try:
        asyncio.run(run_gateway(config, backend))
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
