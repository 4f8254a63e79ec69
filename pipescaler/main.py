"""
pipescaler entry point.
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import List, Optional

from aiohttp import web

from .config import PipeScalerConfig, get_config
from .exceptions import ConfigurationError
from .logging_config import setup_logging
from .scheduler import TickRunner, TimerTrigger
from .server import setup_http_server
from .services import build_services

LOG = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pipescaler",
        description="Scale a queue-driven HDInsight pipeline up and down"
    )
    parser.add_argument("--once", action="store_true",
                        help="Run a single tick, print the result and exit")
    parser.add_argument("--past-due", action="store_true",
                        help="Flag the single tick as past due (with --once)")
    parser.add_argument("--no-server", action="store_true",
                        help="Do not start the health/metrics HTTP server")
    return parser.parse_args(argv)


async def run_once(config: PipeScalerConfig, is_past_due: bool = False) -> int:
    services = build_services(config)
    try:
        result = await services.control_loop.run_tick(is_past_due=is_past_due)
        print(json.dumps(result.to_dict(), indent=2))
        return 0
    finally:
        await services.close()


async def run_forever(config: PipeScalerConfig, serve_http: bool = True) -> int:
    services = build_services(config)
    runner = TickRunner(services.control_loop)
    timer = TimerTrigger(runner, config.loop.interval_seconds, config.loop.past_due_tolerance_seconds)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops
            pass

    http_runner = None
    if serve_http and config.server.enabled:
        http_runner = web.AppRunner(setup_http_server(runner))
        await http_runner.setup()
        site = web.TCPSite(http_runner, config.server.host, config.server.port)
        await site.start()
        LOG.info(f"HTTP server listening on {config.server.host}:{config.server.port}")

    try:
        await timer.run(stop)
    finally:
        LOG.info("Shutting down...")
        if http_runner is not None:
            await http_runner.cleanup()
        await services.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = get_config()
    except ConfigurationError as e:
        setup_logging()
        LOG.critical(str(e))
        return 2

    setup_logging(config.log_level, use_structured=config.log_format == "json")
    LOG.info(f"Log level: {config.log_level.value}")
    LOG.info(f"Idle window: {config.loop.idle_window_minutes} minutes, dry run: {config.loop.dry_run}")

    if args.once:
        return asyncio.run(run_once(config, is_past_due=args.past_due))
    return asyncio.run(run_forever(config, serve_http=not args.no_server))


if __name__ == "__main__":
    sys.exit(main())
