#!/usr/bin/env python3
"""
unstamp.py: strip timestamps from a log file, in place.

Usage:
    poetry run unstamp logs/server.log
    poetry run unstamp --anywhere logs/server.log

Options:
    --start-only    Only strip a timestamp at the start of each line (default)
    --anywhere      Strip timestamps wherever they appear in a line

Ctrl-C cancels; cycles already written to the file are kept.

Settings (environment or .env):
    UNSTAMP_LOG_DIR      log directory (default: logs)
    UNSTAMP_LOG_LEVEL    log level (default: INFO)
    UNSTAMP_START_ONLY   default matching mode, 1 or 0 (default: 1)
"""
import argparse
import logging
import os
import sys
import time
from pathlib import Path

from colorama import Fore, Style, just_fix_windows_console
from dotenv import load_dotenv

from strip_worker import CANCELLED, COMPLETED, CancelFlag, start_processing
from timestamp_filters import get_pattern
from timestamp_progress import STATUS_CANCELLED_BY_USER, STATUS_FAILED, STATUS_READY

VERSION = "1.0.0"
LOG_NAME = "unstamp.log"
BAR_WIDTH = 30
REFRESH_INTERVAL = 0.1

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NOT_FOUND = 2
EXIT_CANCELLED = 130

log = logging.getLogger("unstamp")


def _env_flag(value: str) -> bool:
    return value.strip().lower() not in ("0", "false", "no", "off", "")


def load_settings() -> dict:
    """Read settings from the environment, after loading .env if present."""
    load_dotenv()
    return {
        "log_dir": os.environ.get("UNSTAMP_LOG_DIR", "logs"),
        "log_level": os.environ.get("UNSTAMP_LOG_LEVEL", "INFO").upper(),
        "start_only": _env_flag(os.environ.get("UNSTAMP_START_ONLY", "1")),
    }


def setup_logging(log_dir: str, level: str) -> logging.Handler:
    """Attach a file handler for logs/unstamp.log to the root logger.

    Returns the handler; the caller removes and closes it when the run ends.
    """
    os.makedirs(log_dir, exist_ok=True)
    log_path = Path(log_dir) / LOG_NAME
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(
        "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.INFO))
    return handler


def close_logging(handler: logging.Handler):
    logging.getLogger().removeHandler(handler)
    handler.close()


def render_bar(progress: float, status: str) -> str:
    filled = int(round(progress * BAR_WIDTH))
    bar = "#" * filled + "." * (BAR_WIDTH - filled)
    return f"\r[{bar}] {progress * 100:5.1f}%  {status}"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=f"unstamp v{VERSION}: strip timestamps from a log file in place."
    )
    parser.add_argument("file", type=Path, help="Log file to clean (.log, .txt, ...)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--start-only", action="store_true", dest="start_only", default=None,
                      help="Match only at start of line (default)")
    mode.add_argument("--anywhere", action="store_false", dest="start_only",
                      help="Match timestamps anywhere in the line")
    return parser.parse_args(argv)


def _write_status(text: str, color: str = ""):
    sys.stdout.write("\r" + " " * (BAR_WIDTH + 60) + "\r")
    sys.stdout.write(f"{color}{text}{Style.RESET_ALL}\n")
    sys.stdout.flush()


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = load_settings()
    just_fix_windows_console()

    start_only = settings["start_only"] if args.start_only is None else args.start_only

    if not args.file.is_file():
        print(f"File not found: {args.file}")
        return EXIT_NOT_FOUND

    handler = setup_logging(settings["log_dir"], settings["log_level"])
    try:
        return _run(args.file, start_only, handler.baseFilename)
    finally:
        close_logging(handler)


def _wait_for_outcome(handle):
    """Wait for the worker; further Ctrl-C presses only repeat the cancel."""
    while True:
        try:
            return handle.wait()
        except KeyboardInterrupt:
            handle.cancel()
            log.info("Cancellation already requested, waiting for the worker to stop")


def _run(file_path: Path, start_only: bool, log_path: str) -> int:
    log.info("Processing file: %s (start_only=%s)", file_path.resolve(), start_only)
    sys.stderr.write(f"[unstamp v{VERSION}] Log: {log_path}\n")
    sys.stderr.write(f"[unstamp v{VERSION}] Pattern: {get_pattern(start_only).pattern}\n")
    sys.stderr.flush()

    _write_status(STATUS_READY)
    cancel_flag = CancelFlag()
    handle = start_processing(file_path, start_only, cancel_flag)

    try:
        while not handle.done():
            sys.stdout.write(render_bar(handle.progress, handle.status))
            sys.stdout.flush()
            time.sleep(REFRESH_INTERVAL)
    except KeyboardInterrupt:
        handle.cancel()
        log.info("Task cancellation requested by user")
        _write_status(STATUS_CANCELLED_BY_USER, Fore.YELLOW)

    outcome = _wait_for_outcome(handle)
    sys.stdout.write(render_bar(handle.progress, handle.status))
    sys.stdout.flush()

    if outcome.kind == COMPLETED:
        _write_status(handle.status, Fore.GREEN)
        return EXIT_OK
    if outcome.kind == CANCELLED:
        _write_status(handle.status, Fore.YELLOW)
        return EXIT_CANCELLED

    _write_status(STATUS_FAILED, Fore.RED)
    sys.stderr.write(f"{Fore.RED}An error occurred: {outcome.error}{Style.RESET_ALL}\n")
    sys.stderr.flush()
    return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
