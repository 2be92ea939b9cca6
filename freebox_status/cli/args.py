"""
Command Line Argument Parsing Module

This module handles argument parsing and validation for the Freebox Status
CLI.

License: MIT
"""

import argparse
import logging
import os
from typing import Optional, Sequence

from freebox_status.config import (
    DEFAULT_APP_ID,
    DEFAULT_HOST,
    DEFAULT_PHONE_CALLS_INTERVAL,
    DEFAULT_PHONE_INTERVAL,
    DEFAULT_REFRESH_INTERVAL,
)

logger = logging.getLogger(__name__)

APP_TOKEN_ENV = "FREEBOX_APP_TOKEN"


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Poll a Freebox router and print phone and LAN device state as JSON lines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  %(prog)s --app-token "token"
  %(prog)s --app-token "token" --mac 00:24:D4:AA:BB:CC --ip 192.168.1.20
  %(prog)s --app-token "token" --calls-interval 30 --duration 600

Output:
  One JSON object per published value on stdout:
    {{"thing": "phone", "channel": "missed.callnumber", "value": "0612345678", ...}}
  Status changes and a summary at exit go to stderr.

Authentication:
  The app token is granted once on the router's front panel. It can also be
  given through the {APP_TOKEN_ENV} environment variable.

Intervals:
  All intervals are in seconds. An interval of 0 disables that poll.
        """,
    )

    # Connection settings
    parser.add_argument("--host", default=DEFAULT_HOST, help="Router hostname or IP address (default: %(default)s)")
    parser.add_argument("--port", default=443, type=int, help="API port (default: %(default)s)")
    parser.add_argument("--app-id", default=DEFAULT_APP_ID, help="Application id of the token (default: %(default)s)")
    parser.add_argument(
        "--app-token",
        default=os.environ.get(APP_TOKEN_ENV),
        help=f"Application token (default: ${APP_TOKEN_ENV})",
    )
    parser.add_argument("--http", action="store_true", help="Use plain http instead of https")
    parser.add_argument("--verify-ssl", action="store_true", help="Verify the router certificate")
    parser.add_argument("--timeout", type=int, default=10, help="Request read timeout in seconds (default: %(default)s)")
    parser.add_argument("--retries", type=int, default=2, help="Maximum retry attempts (default: %(default)s)")
    parser.add_argument("--workers", type=int, default=2, help="Number of poll workers (default: %(default)s)")

    # Things
    parser.add_argument(
        "--phone-interval",
        type=int,
        default=DEFAULT_PHONE_INTERVAL,
        help="Phone state poll period (default: %(default)s)",
    )
    parser.add_argument(
        "--calls-interval",
        type=int,
        default=DEFAULT_PHONE_CALLS_INTERVAL,
        help="Call log poll period (default: %(default)s)",
    )
    parser.add_argument("--no-phone", action="store_true", help="Do not track the phone line")
    parser.add_argument(
        "--lan-interval",
        type=int,
        default=DEFAULT_REFRESH_INTERVAL,
        help="LAN hosts poll period (default: %(default)s)",
    )
    parser.add_argument("--mac", action="append", default=[], help="Track a LAN device by MAC address (repeatable)")
    parser.add_argument("--ip", action="append", default=[], help="Track a LAN interface by IP address (repeatable)")

    # Run options
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Stop after this many seconds, 0 runs until interrupted (default: %(default)s)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging output to stderr")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors to stderr")

    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logger.debug(f"Parsed arguments: {args}")

    validate_args(args)

    return args


def validate_args(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Raises:
        ValueError: If arguments are invalid
    """
    if not args.app_token:
        raise ValueError(f"An app token is required (--app-token or ${APP_TOKEN_ENV})")

    if args.timeout <= 0:
        raise ValueError("Timeout must be greater than 0")

    if args.workers < 1:
        raise ValueError("Workers must be at least 1")

    if args.retries < 0:
        raise ValueError("Retries cannot be negative")

    if args.port < 1 or args.port > 65535:
        raise ValueError("Port must be between 1 and 65535")

    if args.duration < 0:
        raise ValueError("Duration cannot be negative")

    logger.debug("Arguments validated successfully")
