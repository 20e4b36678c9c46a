#!/usr/bin/env python3
"""
ER Wait Sampler - Main entry point
"""

import sys
import os
import argparse
from pathlib import Path

# Add the project directory to Python path
project_dir = Path(__file__).parent
sys.path.insert(0, str(project_dir))

from wait_sampler.config import load_app_config
from wait_sampler.database import DatabaseManager
from wait_sampler.errors import ConfigError
from wait_sampler.history import read_samples, find_gaps
from wait_sampler.logging_config import setup_logging, setup_fallback_logging
from wait_sampler.sampler import build_sampler
from wait_sampler.scheduler import SamplerScheduler
from loguru import logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ER Wait Sampler - periodic wait-time collection")
    parser.add_argument(
        "--config",
        type=Path,
        default=project_dir / "config" / "config.yaml",
        help="Path to configuration file"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once",
        action="store_true",
        help="Run a single tick and exit (for cron or systemd timers)"
    )
    mode.add_argument(
        "--status",
        action="store_true",
        help="Show recent tick history and exit"
    )
    mode.add_argument(
        "--gaps",
        action="store_true",
        help="Report gaps in the local sample log and exit"
    )
    parser.add_argument(
        "--daemon",
        action="store_true",
        help="Run as daemon (background process)"
    )
    return parser


def show_status(db_manager: DatabaseManager, limit: int = 10) -> int:
    total = db_manager.count_ticks()
    failed = db_manager.count_ticks("failed")
    print("ER Wait Sampler Status:")
    print(f"  Ticks recorded: {total}")
    print(f"  Failed ticks: {failed}")
    print("  Recent ticks:")
    for record in db_manager.get_recent_ticks(limit):
        if record.status == "success":
            detail = (f"patients={record.patient_count} avg={record.average_wait_minutes} "
                      f"longest={record.longest_wait_minutes}")
        else:
            detail = f"{record.error_kind}: {record.error_message}"
        print(f"    {record.tick_time.isoformat(timespec='seconds')} {record.status:<7} {detail}")
    return 0


def show_gaps(config) -> int:
    if config.sink.kind != "file":
        print("Gap report needs the local file sink")
        return 1

    path = config.sink.file_path
    if not path.exists():
        print(f"No sample log at {path}")
        return 1

    samples = read_samples(path, config.timezone)
    gaps = find_gaps(samples, config.schedule.interval_minutes)
    print(f"{len(samples)} samples in {path}")
    for gap in gaps:
        print(f"  {gap.previous.timestamp} -> {gap.next.timestamp}: {gap.missing_ticks} missing tick(s)")
    print(f"Total gaps: {len(gaps)}")
    return 0


def main(argv=None):
    """Main entry point"""
    args = build_parser().parse_args(argv)

    try:
        config = load_app_config(args.config)
    except ConfigError as e:
        setup_fallback_logging()
        logger.error(f"Configuration error: {e}")
        return 1

    # Setup logging
    logging_manager = setup_logging(config.logging, config.base_dir / "logs")

    db_manager = DatabaseManager(config.database.path)

    if args.status:
        return show_status(db_manager)

    if args.gaps:
        return show_gaps(config)

    scheduler = SamplerScheduler(
        build_sampler(config),
        config.schedule,
        db_manager=db_manager,
        retention_days=config.database.retention_days,
    )

    if args.once:
        sample = scheduler.run_tick()
        return 0 if sample is not None else 1

    # Log system info
    logging_manager.log_system_info(config)

    if args.daemon:
        logger.info("Starting sampler as daemon")
        daemonize()

    try:
        scheduler.start()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")

    logger.info("ER Wait Sampler stopped")
    return 0


def daemonize():
    """Daemonize the process (Unix only)"""
    if os.name == 'nt':
        logger.warning("Daemon mode not supported on Windows")
        return

    try:
        # First fork
        pid = os.fork()
        if pid > 0:
            sys.exit(0)  # Exit parent

        # Decouple from parent environment
        os.chdir("/")
        os.setsid()
        os.umask(0o022)

        # Second fork
        pid = os.fork()
        if pid > 0:
            sys.exit(0)  # Exit second parent

        sys.stdout.flush()
        sys.stderr.flush()

        with open(os.devnull, 'r') as devnull:
            os.dup2(devnull.fileno(), sys.stdin.fileno())
        with open(os.devnull, 'w') as devnull:
            os.dup2(devnull.fileno(), sys.stdout.fileno())
            os.dup2(devnull.fileno(), sys.stderr.fileno())

        logger.info("Process daemonized successfully")

    except OSError as e:
        logger.error(f"Failed to daemonize: {e}")
        sys.exit(1)


if __name__ == "__main__":
    sys.exit(main())
