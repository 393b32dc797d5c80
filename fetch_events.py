#!/usr/bin/env python3
"""Historical event discovery: fetch, classify, and store pipeline."""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from histoglobe.config import load_config
from histoglobe.processing.discovery import discover_events
from histoglobe.storage.cache import DiscoveryCache
from histoglobe.storage.database import Database


def setup_logging(log_path: Path):
    """Set up rotating file handler for pipeline logs."""
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Create rotating handler: rotates at midnight, keeps 7 days
    handler = TimedRotatingFileHandler(
        filename=log_path,
        when='midnight',
        interval=1,
        backupCount=7,
        encoding='utf-8'
    )
    handler.suffix = '%Y-%m-%d'

    logging.basicConfig(
        level=logging.INFO,
        format='%(message)s',
        handlers=[handler, logging.StreamHandler(sys.stdout)]
    )

    return logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Discover historical events around a point.")
    parser.add_argument("lat", type=float, help="latitude in degrees")
    parser.add_argument("lon", type=float, help="longitude in degrees")
    parser.add_argument("--radius", type=float, default=None, help="search radius in meters (max 10000)")
    parser.add_argument("--json", action="store_true", help="print the ranked events as JSON")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    cfg = load_config()
    logger = setup_logging(Path(cfg["log_path"]))

    start_time = datetime.now()
    logger.info("\n" + "=" * 60)
    logger.info("Historical Event Discovery")
    logger.info(f"Point: {args.lat:.4f}, {args.lon:.4f}")
    logger.info(f"Started: {start_time.strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info("=" * 60)

    with Database(cfg["db_path"]) as db:
        # Already-stored events are never rescored
        cache = DiscoveryCache()
        seeded = cache.seed(db.query_events(limit=100000))
        logger.info(f"\n[1/3] Loaded {seeded} known events from {cfg['db_path']}")

        logger.info("[2/3] Discovering...")
        report = asyncio.run(discover_events(args.lat, args.lon, args.radius, cache=cache, cfg=cfg))

        logger.info("[3/3] Storing results...")
        stored = db.save_events(report.events)

        if args.json:
            print(json.dumps([e.to_dict() for e in report.events], ensure_ascii=False, indent=2))

    duration = (datetime.now() - start_time).total_seconds()
    logger.info("\n" + "=" * 60)
    logger.info("Pipeline Complete!" if not report.degraded else "Pipeline Complete (degraded)")
    logger.info(f"  Duration:    {duration:.1f}s")
    logger.info(f"  Candidates:  {report.candidates}")
    logger.info(f"  Kept:        {report.accepted} ({report.rejected} rejected)")
    logger.info(f"  Stored:      {stored} events")
    if report.degraded:
        logger.info(f"  Failed calls: {report.failed_calls}")
    logger.info("=" * 60)

    for event in report.events[:10]:
        logger.info(f"  {event.score:>6}  [{event.category}] {event.title}")


if __name__ == "__main__":
    main()
