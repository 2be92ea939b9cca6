"""
Main CLI Orchestration Module

This module provides the main entry point of the Freebox Status CLI: it
builds the client, the monitor and one adapter per tracked thing, then polls
until interrupted or until ``--duration`` elapses.

License: MIT
"""

import logging
import sys
import time
from typing import Optional, Sequence

from freebox_status import __version__
from freebox_status.adapter import DeviceAdapter, NetDeviceAdapter, NetInterfaceAdapter, PhoneAdapter
from freebox_status.client import FreeboxClient
from freebox_status.config import BridgeConfig
from freebox_status.exceptions import FreeboxConfigurationError
from freebox_status.instrumentation import PerformanceInstrumentation
from freebox_status.monitor import FreeboxMonitor
from freebox_status.publisher import InMemoryStatePublisher
from freebox_status.scheduler import PollScheduler

from .args import parse_args
from .formatters import format_update, print_error_suggestions, print_json_line, print_summary_to_stderr
from .logging_setup import setup_logging

logger = logging.getLogger(__name__)


def build_adapters(args, scheduler: PollScheduler) -> list[DeviceAdapter]:
    """Create one adapter per thing requested on the command line."""
    adapters: list[DeviceAdapter] = []

    def publisher_for(thing_id: str) -> InMemoryStatePublisher:
        publisher = InMemoryStatePublisher(thing_id)
        publisher.add_listener(lambda update: print_json_line(format_update(thing_id, update)))
        return publisher

    if not args.no_phone:
        adapters.append(
            PhoneAdapter(
                "phone",
                publisher_for("phone"),
                scheduler,
                config={
                    "refreshPhoneInterval": args.phone_interval,
                    "refreshPhoneCallsInterval": args.calls_interval,
                },
            )
        )

    for mac in args.mac:
        thing_id = f"netdevice:{mac}"
        adapters.append(NetDeviceAdapter(thing_id, publisher_for(thing_id), config={"macAddress": mac}))

    for ip in args.ip:
        thing_id = f"netinterface:{ip}"
        adapters.append(NetInterfaceAdapter(thing_id, publisher_for(thing_id), config={"ipAddress": ip}))

    return adapters


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point for the CLI application."""
    start_time = time.time()
    debug = False
    monitor: Optional[FreeboxMonitor] = None

    try:
        args = parse_args(argv)
        debug = args.debug

        setup_logging(debug=args.debug, quiet=args.quiet)

        if not args.quiet:
            print(f"Freebox Status v{__version__} - polling {args.host}:{args.port}", file=sys.stderr)

        config = BridgeConfig(
            app_token=args.app_token,
            host=args.host,
            port=args.port,
            app_id=args.app_id,
            use_https=not args.http,
            verify_ssl=args.verify_ssl,
            timeout=(3, args.timeout),
            max_retries=args.retries,
            refresh_interval=args.lan_interval,
        )

        instrumentation = PerformanceInstrumentation()
        client = FreeboxClient.from_config(config, instrumentation=instrumentation)
        scheduler = PollScheduler(max_workers=args.workers, instrumentation=instrumentation)
        monitor = FreeboxMonitor(client, scheduler=scheduler, refresh_interval=config.refresh_interval)

        for adapter in build_adapters(args, scheduler):
            monitor.add_adapter(adapter)

        logger.info(f"Tracking {len(monitor.adapters)} thing(s)")
        monitor.start()

        if args.duration > 0:
            time.sleep(args.duration)
        else:
            while True:
                time.sleep(1)

    except KeyboardInterrupt:
        logger.info(f"Stopped by user after {time.time() - start_time:.2f}s")

    except (FreeboxConfigurationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    except Exception as e:
        elapsed = time.time() - start_time
        logger.error(f"Monitor failed after {elapsed:.2f}s: {e}")
        print(f"Error after {elapsed:.2f}s: {e}", file=sys.stderr)
        print_error_suggestions(debug=debug)
        sys.exit(1)

    finally:
        if monitor is not None:
            monitor.stop()
            if not args.quiet:
                print_summary_to_stderr(
                    monitor.adapters.values(),
                    time.time() - start_time,
                    monitor.scheduler.instrumentation.get_performance_summary()
                    if monitor.scheduler.instrumentation
                    else None,
                )


if __name__ == "__main__":
    main()
