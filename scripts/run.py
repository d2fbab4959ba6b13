#!/usr/bin/env python3
"""Alert publisher entrypoint — wires all components and runs until stopped.

Usage::

    # Run with default config
    python scripts/run.py

    # Custom config file
    python scripts/run.py --config config/settings.yaml

    # Replay inbound alerts from an NDJSON file (one alert per line)
    python scripts/run.py --input alerts.ndjson

    # Override log level
    python scripts/run.py --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path

import structlog

from src.api.server import start_api_server
from src.bus.consumer import AlertConsumer
from src.bus.publisher import create_publisher
from src.channels.factory import create_channels
from src.core.config import load_settings
from src.core.logging import setup_logging
from src.dispatch.dispatcher import AlertDispatcher
from src.dispatch.retry import RetryScheduler
from src.tracking.store import InMemoryTrackingStore

logger = structlog.get_logger(__name__)


async def replay(consumer: AlertConsumer, path: Path) -> int:
    """Feed each non-blank line of *path* to the consumer."""
    accepted = 0
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            if await consumer.handle(line):
                accepted += 1
    logger.info("replay_finished", path=str(path), accepted=accepted, **consumer.stats)
    return accepted


async def run(args: argparse.Namespace) -> int:
    """Start all components and run until interrupted."""
    settings = load_settings(args.config)
    setup_logging(level=args.log_level)

    cb = settings.channels.cell_broadcast
    push = settings.channels.push
    logger.info(
        "publisher_starting",
        cell_broadcast=cb.enabled,
        cell_broadcast_simulated=cb.simulate,
        push=push.enabled,
        push_simulated=push.simulate,
        retry_loop=settings.retry.enabled,
    )

    # ── Dispatch pipeline ────────────────────────────────────────
    store = InMemoryTrackingStore()
    publisher = create_publisher(settings.bus)
    dispatcher = AlertDispatcher(
        channels=create_channels(settings.channels),
        publisher=publisher,
        store=store,
    )
    retry = RetryScheduler(dispatcher, settings.retry)
    consumer = AlertConsumer(dispatcher, settings.bus)

    if settings.retry.enabled:
        await retry.start()

    # ── Query API ────────────────────────────────────────────────
    runner = None
    if settings.api.enabled:
        runner = await start_api_server(
            store,
            retry,
            host=settings.api.host,
            port=settings.api.port,
            stats_window_hours=settings.api.stats_window_hours,
        )

    # ── Inbound replay ───────────────────────────────────────────
    if args.input:
        input_path = Path(args.input)
        if not input_path.exists():
            logger.error("input_not_found", path=str(input_path))
            print(f"Input file not found: {input_path}", file=sys.stderr)
            await retry.stop()
            if runner is not None:
                await runner.cleanup()
            await dispatcher.close()
            return 1
        await replay(consumer, input_path)

    # ── Wait for shutdown signal ─────────────────────────────────
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    if args.once:
        await dispatcher.wait_idle()
    else:
        try:
            await stop_event.wait()
        except KeyboardInterrupt:
            logger.info("keyboard_interrupt")

    # ── Graceful shutdown ────────────────────────────────────────
    logger.info("publisher_shutting_down", in_flight=dispatcher.in_flight)

    await retry.stop()
    if runner is not None:
        await runner.cleanup()
    await dispatcher.close()

    failed = sum(1 for r in await store.all() if r.has_failure)
    logger.info("publisher_stopped", tracked=store.count, failed=failed, **dispatcher.stats)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run the disaster alert publisher.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--input",
        default=None,
        help="NDJSON file of inbound alerts to replay through the consumer",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Exit once replayed alerts have been delivered instead of serving",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
