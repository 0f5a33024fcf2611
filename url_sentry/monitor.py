#!/usr/bin/env python3
"""Command line entry point for the clipboard URL monitor."""

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import List, Optional

from url_sentry.core.clipboard import (BACKENDS, DEFAULT_POLL_INTERVAL,
                                       ClipboardWatcher, create_clipboard)
from url_sentry.exceptions import ClipboardAccessError
from url_sentry.rules import DEFAULT_RULES_PATH, RuleStore
from url_sentry.sanitizer import Sanitizer

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'
CONFIG_ENV_VAR = "URL_SENTRY_CONFIG"
BANNER = "Starting clipboard monitor... (Control + C to quit)"

logger = logging.getLogger(__name__)


class ANSIColors:
    """ANSI color codes for terminal output."""
    GREEN = "32"
    CYAN = "36"
    RESET = "0"

    @staticmethod
    def colorize(text: str, color_code: str) -> str:
        """Applies ANSI color codes to text."""
        if not sys.stdout.isatty():
            return text
        return f"\033[{color_code}m{text}\033[{ANSIColors.RESET}m"


def positive_float(value: str) -> float:
    """argparse type for a strictly positive number of seconds"""
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value}")
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return seconds


def get_parser() -> argparse.ArgumentParser:
    """Get argument parser"""
    parser = argparse.ArgumentParser(
        prog="url-sentry",
        description="Strip tracking parameters from URLs copied to the clipboard",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--config',
                        default=os.getenv(CONFIG_ENV_VAR, str(DEFAULT_RULES_PATH)),
                        help=f'Path to the tracking rules JSON file (env: {CONFIG_ENV_VAR})')
    parser.add_argument('--interval', type=positive_float, default=DEFAULT_POLL_INTERVAL,
                        help='Seconds between clipboard checks')
    parser.add_argument('--backend', choices=BACKENDS, default='auto',
                        help='Clipboard access backend')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')
    parser.add_argument('--log-file',
                        help='Write logs to this file instead of stderr')
    return parser


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    return get_parser().parse_args(args)


def setup_logging(debug: bool = False, log_file: Optional[str] = None) -> None:
    """Configure root logging once for the process"""
    logging.basicConfig(
        filename=log_file,
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT
    )


def report_cleaned(url: str) -> None:
    print(ANSIColors.colorize(f"Cleaned URL: {url}", ANSIColors.GREEN))


def build_watcher(args: argparse.Namespace) -> ClipboardWatcher:
    """Wire rules, sanitizer and clipboard backend into a watcher"""
    rule_store = RuleStore.from_path(args.config)
    clipboard = create_clipboard(args.backend)
    return ClipboardWatcher(clipboard, Sanitizer(rule_store),
                            interval=args.interval, on_clean=report_cleaned)


async def run(watcher: ClipboardWatcher) -> None:
    """Monitor until stopped, stopping cleanly on SIGTERM where supported"""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGTERM, watcher.stop)
    except (NotImplementedError, RuntimeError, ValueError):
        logger.debug("SIGTERM handler not supported on this platform")
    await watcher.monitor()


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point"""
    args = parse_arguments(argv)
    setup_logging(args.debug, args.log_file)

    try:
        watcher = build_watcher(args)
    except ClipboardAccessError as e:
        logger.error(f"Cannot access the clipboard: {e}")
        sys.exit(1)

    print(ANSIColors.colorize(BANNER, ANSIColors.CYAN))
    try:
        asyncio.run(run(watcher))
    except KeyboardInterrupt:
        print("\nProgram interrupted. Exiting.")


if __name__ == "__main__":
    main()
