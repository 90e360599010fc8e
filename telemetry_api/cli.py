"""CLI entry point: runs the feed monitor headless and logs readings."""

from __future__ import annotations

import argparse
import logging
import time
from dataclasses import replace

from common.config import load_env_file
from common.logging_setup import configure_logging

from .core.domain.feed_config import FeedConfig, FeedConfigError
from .core.domain.reading import Reading
from .core.domain.status import ConnectionStatus, SeverityBand
from .monitor import SensorFeedMonitor

logger = logging.getLogger(__name__)


def _build_config(args: argparse.Namespace) -> FeedConfig:
    cfg = FeedConfig.from_env()
    overrides = {}
    if args.host:
        overrides["broker_host"] = args.host
    if args.port:
        overrides["broker_port"] = args.port
    if args.topic:
        overrides["topic"] = args.topic
    return replace(cfg, **overrides) if overrides else cfg


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Fridge temperature feed monitor")
    p.add_argument("--duration", type=float, default=0.0, help="stop after N seconds (0 = run until Ctrl+C)")
    p.add_argument("--host", default=None, help="broker host override")
    p.add_argument("--port", type=int, default=None, help="broker port override")
    p.add_argument("--topic", default=None, help="topic override")
    p.add_argument("--log-level", default=None)
    args = p.parse_args(argv)

    configure_logging(args.log_level.upper() if args.log_level else None)
    load_env_file()

    try:
        cfg = _build_config(args)
    except FeedConfigError as e:
        logger.error("Configuración inválida: %s", e)
        return 2
    monitor = SensorFeedMonitor(cfg)

    def _on_reading(reading: Reading, band: SeverityBand) -> None:
        logger.info("[FEED] %.2f °C -> %s", reading.value, band.value)

    def _on_status(old: ConnectionStatus, new: ConnectionStatus) -> None:
        if new == ConnectionStatus.SUBSCRIBED:
            logger.info("[FEED] Waiting for data on %s...", cfg.topic)
        elif new == ConnectionStatus.FAILED:
            logger.error("[FEED] Monitor failed: %s", monitor.snapshot().last_error)

    monitor.add_reading_listener(_on_reading)
    monitor.add_status_listener(_on_status)

    logger.info("Feed monitor started client_id=%s", monitor.client_id)
    monitor.start()

    deadline = time.monotonic() + args.duration if args.duration > 0 else None
    failed = False
    try:
        while deadline is None or time.monotonic() < deadline:
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("Interrumpido por el usuario")
    finally:
        failed = monitor.current_status() == ConnectionStatus.FAILED
        monitor.teardown()
        logger.info("Stats: %s", monitor.stats)

    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
