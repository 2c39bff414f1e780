"""Command-line entrypoint for the PostgreSQL storage reporter.

Startup (config, logging, single-instance guard, endpoint check) is fatal on
failure and exits with status 1. After that the scheduler owns the process.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import Optional

from . import guard
from .config import DEFAULT_CONFIG_PATH, Settings, load_settings
from .emitter import EventEmitter
from .errors import ReportError, format_error_chain
from .logging_config import configure_logging
from .report import ReportCycle
from .scheduler import RunMode, Scheduler
from .telemetry import CYCLE_COMPLETED

LOGGER = logging.getLogger("pgfs_report")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pgfs-report",
        description="Report PostgreSQL database storage usage to a Fluentd endpoint.",
    )
    parser.add_argument(
        "-c",
        "--conf",
        default=DEFAULT_CONFIG_PATH,
        help=f"Configuration file path (default: {DEFAULT_CONFIG_PATH}).",
    )
    return parser.parse_args(argv)


def init(argv: Optional[list[str]] = None) -> Settings:
    args = parse_args(argv)
    settings = load_settings(args.conf)
    configure_logging(settings.general.log_conf_path)
    return settings


def build_emitter(settings: Settings) -> EventEmitter:
    return EventEmitter(
        settings.fluentd.address,
        settings.fluentd.tag,
        settings.retry_policy(),
        timeout=settings.fluentd.timeout,
    )


def run(settings: Settings) -> int:
    # held for the lifetime of the process so a second instance cannot start
    lock = guard.acquire(settings.general.lock_file)
    emitter = build_emitter(settings)
    try:
        emitter.check()
        scheduler = Scheduler(ReportCycle(settings, emitter), settings.repeat_delay_seconds())
        if scheduler.mode is RunMode.SINGLE_SHOT:
            outcome = scheduler.run()
            return 0 if outcome.name == CYCLE_COMPLETED else 1

        # SIGTERM stops a repeating run the same way Ctrl-C does
        previous_sigterm = signal.signal(signal.SIGTERM, signal.default_int_handler)
        try:
            scheduler.run()
        except KeyboardInterrupt:
            LOGGER.info("Stopping after %d cycle(s).", scheduler.cycles_run)
        finally:
            signal.signal(signal.SIGTERM, previous_sigterm if previous_sigterm is not None else signal.SIG_DFL)
        return 0
    finally:
        emitter.close()
        lock.release()


def main(argv: Optional[list[str]] = None) -> int:
    try:
        settings = init(argv)
    except ReportError as exc:
        print(format_error_chain(exc), file=sys.stderr)
        return 1

    LOGGER.info("Program started!")
    LOGGER.debug("Configuration: %s", settings.redacted())
    try:
        return run(settings)
    except ReportError as exc:
        LOGGER.error("%s", format_error_chain(exc))
        return 1


if __name__ == "__main__":
    sys.exit(main())
