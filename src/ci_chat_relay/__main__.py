"""Entry point for running the CI Chat Relay.

This module provides the main entry point for the CI Chat Relay.
It handles:
- Configuration loading
- Logging setup with secret sanitization
- Adapter instantiation
- Relay lifecycle management
"""

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from ci_chat_relay._version import __version__

log = structlog.get_logger()


def setup_logging(debug: bool = False, log_format: str = "console") -> None:
    """Configure structured logging before the config file is read.

    Args:
        debug: Enable debug logging if True
        log_format: Output format ("json" or "console")
    """
    from ci_chat_relay.utils.logging import configure_logging

    configure_logging(level="DEBUG" if debug else "INFO", log_format=log_format)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="ci-chat-relay",
        description="CI Chat Relay - Drive Jenkins from chat commands",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config/config.yaml"),
        help="Path to configuration file (default: config/config.yaml)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse config and validate without starting the relay",
    )

    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Run health check and exit",
    )

    parser.add_argument(
        "--health-file",
        type=Path,
        default=None,
        help="Also write the health report as JSON to this path",
    )

    return parser.parse_args(argv)


async def run_relay(
    config_path: Path,
    dry_run: bool = False,
    health_check: bool = False,
    health_file: Path | None = None,
    debug: bool = False,
) -> int:
    """Run the CI Chat Relay.

    Args:
        config_path: Path to configuration file
        dry_run: If True, only validate config without starting
        health_check: If True, run health check and exit
        health_file: Where to write the health report (health check only)
        debug: Keep DEBUG level even if the config file says otherwise

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    log.info(
        "starting_ci_chat_relay",
        version=__version__,
        config_path=str(config_path),
    )

    try:
        from ci_chat_relay.config.loader import load_config

        log.info("loading_configuration", path=str(config_path))
        config = load_config(config_path)
        log.info("configuration_loaded")

        # Reconfigure logging from config file settings
        from ci_chat_relay.utils.logging import configure_logging

        configure_logging(
            level="DEBUG" if debug else config.logging.level,
            log_format=config.logging.format,
            file_path=config.logging.file.path if config.logging.file.enabled else None,
        )

        if dry_run:
            log.info("dry_run_mode_config_valid")
            return 0

        if health_check:
            from ci_chat_relay.utils.health import HealthChecker, write_health_file

            checker = HealthChecker(config)
            report = await checker.run_all_checks()

            if health_file is not None:
                write_health_file(report, health_file)

            if report.healthy:
                log.info("health_check_passed", details=report.details)
                return 0
            log.error("health_check_failed", details=report.details)
            return 1

        from ci_chat_relay.core.relay import create_relay

        log.info("creating_relay")
        relay = await create_relay(config)

        log.info("starting_relay")
        await relay.start()

        return 0

    except FileNotFoundError as e:
        log.error("configuration_file_not_found", path=str(config_path), error=str(e))
        return 1
    except ValueError as e:
        # pydantic.ValidationError is a ValueError
        log.error("configuration_invalid", error=str(e))
        return 1
    except Exception as e:
        log.exception("fatal_error", error=str(e))
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(debug=args.debug, log_format=args.format)

    try:
        return asyncio.run(
            run_relay(
                args.config,
                dry_run=args.dry_run,
                health_check=args.health_check,
                health_file=args.health_file,
                debug=args.debug,
            )
        )
    except KeyboardInterrupt:
        log.info("shutting_down_gracefully")
        return 0


if __name__ == "__main__":
    sys.exit(main())
