#!/usr/bin/env python3
"""
Backfill the spreadsheet from the local CSV sample log

Reads every sample from the file sink and appends them to the spreadsheet
configured under sink.sheets, in log order, in batches.

Usage:
    python scripts/backfill_sheet.py [--config PATH] [--since "MM/DD/YY HH:MM:SS"] [--dry-run]
"""

import sys
import argparse
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

# Add project directory to path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import requests
from loguru import logger

from wait_sampler.config import load_yaml, get_config_value, load_sheets_config, resolve_path
from wait_sampler.errors import SamplerError, ConfigError
from wait_sampler.history import read_samples
from wait_sampler.models import TIMESTAMP_FORMAT, DEFAULT_TIMEZONE
from wait_sampler.sampler import build_sheets_sink


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Append the local sample log to the spreadsheet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=project_dir / "config" / "config.yaml",
        help='Path to configuration file'
    )
    parser.add_argument(
        '--since',
        help='Only push samples captured at or after this time (MM/DD/YY HH:MM:SS)'
    )
    parser.add_argument(
        '--batch-size',
        type=int,
        default=500,
        help='Rows per append request'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be pushed without calling the API'
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)

    try:
        raw = load_yaml(args.config)
        sheets = load_sheets_config(raw, args.config.parent)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    timezone = str(get_config_value(raw, "timezone", DEFAULT_TIMEZONE))
    csv_path = resolve_path(args.config.parent.parent, get_config_value(raw, "sink.file.path", "data/wait_times.csv"))
    if not csv_path.exists():
        logger.error(f"No sample log at {csv_path}")
        return 1

    samples = read_samples(csv_path, timezone)
    if args.since:
        try:
            since = datetime.strptime(args.since, TIMESTAMP_FORMAT).replace(tzinfo=ZoneInfo(timezone))
        except ValueError:
            logger.error(f"--since must look like MM/DD/YY HH:MM:SS, got {args.since!r}")
            return 1
        samples = [sample for sample in samples if sample.captured_at >= since]

    print(f"{len(samples)} samples to push from {csv_path}")
    if args.dry_run or not samples:
        return 0

    sink = build_sheets_sink(sheets, requests.Session())

    pushed = 0
    for start in range(0, len(samples), args.batch_size):
        batch = samples[start:start + args.batch_size]
        try:
            sink.append_many(batch)
        except SamplerError as e:
            logger.error(f"Backfill stopped after {pushed} samples ({e.kind}): {e.message}")
            return 1
        pushed += len(batch)
        logger.info(f"Pushed {pushed}/{len(samples)} samples")

    print(f"Backfill complete: {pushed} samples")
    return 0


if __name__ == "__main__":
    sys.exit(main())
