"""
Logging configuration for the sampler using loguru

Handlers:
    stderr       colored, at the configured level
    sampler.log  everything at the configured level, rotated
    errors.log   ERROR and above
    ticks.log    only records bound with tick context (see tick_logger)
"""

import sys
import platform
from datetime import datetime
from pathlib import Path
from typing import Dict, Any
from loguru import logger
import psutil

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
TICK_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | tick {extra[tick]} | {message}"


def tick_logger(tick_time: datetime):
    """Logger bound to one tick; its records also land in ticks.log"""
    return logger.bind(tick=tick_time.isoformat(timespec='seconds'))


def _is_tick_record(record) -> bool:
    return "tick" in record["extra"]


class LoggingManager:
    """Manages logging configuration and setup"""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.logs_dir = None
        self._configured = False

    @property
    def level(self) -> str:
        return str(self.config.get("level", "INFO")).upper()

    def _add_file(self, filename: str, **options):
        options.setdefault("format", FILE_FORMAT)
        options.setdefault("compression", "gz")
        return logger.add(str(self.logs_dir / filename), **options)

    def setup_logging(self, logs_dir: Path):
        """Setup loguru logging with configuration"""
        if self._configured:
            return

        self.logs_dir = logs_dir
        logs_dir.mkdir(parents=True, exist_ok=True)

        # Replace loguru's default stderr handler
        logger.remove()
        logger.add(sys.stderr, level=self.level, format=CONSOLE_FORMAT, colorize=True)

        self._add_file(
            self.config.get("file", "sampler.log"),
            level=self.level,
            rotation=self.config.get("rotation", "1 day"),
            retention=self.config.get("retention", "7 days"),
        )
        self._add_file(
            self.config.get("errors_file", "errors.log"),
            level="ERROR",
            rotation="1 week",
            retention="30 days",
        )
        self._add_file(
            self.config.get("ticks_file", "ticks.log"),
            level="INFO",
            format=TICK_FORMAT,
            filter=_is_tick_record,
            rotation="1 day",
            retention=self.config.get("tick_retention", "30 days"),
        )

        self._configured = True
        logger.info(f"Logging to {logs_dir} at level {self.level}")

    def log_system_info(self, app_config=None):
        """Log host details and the effective sampler settings at startup"""
        logger.info("=" * 50)
        logger.info("ER Wait Sampler Starting")
        logger.info("=" * 50)
        logger.info(f"Python {platform.python_version()} on {platform.platform()}")
        logger.info(
            f"CPUs: {psutil.cpu_count()}, memory available: "
            f"{psutil.virtual_memory().available / 1024 / 1024:.0f} MB"
        )

        if app_config is not None:
            logger.info(f"Source: {app_config.source.url} (timeout {app_config.source.timeout}s)")
            if app_config.sink.kind == "file":
                logger.info(f"Sink: file {app_config.sink.file_path}")
            else:
                logger.info(f"Sink: sheets {app_config.sink.sheets.append_url}")
            schedule = app_config.schedule
            mode = "clock-aligned" if schedule.align_to_clock else "relative"
            logger.info(f"Schedule: every {schedule.interval_minutes} minutes, {mode}")
            logger.info(f"Timestamps in {app_config.timezone}")

            data_dir = app_config.database.path.parent
            data_dir.mkdir(parents=True, exist_ok=True)
            free_mb = psutil.disk_usage(str(data_dir)).free / 1024 / 1024
            logger.info(f"Tick history: {app_config.database.path} ({free_mb:.0f} MB free)")
        logger.info("=" * 50)


def setup_logging(logging_config: Dict[str, Any], logs_dir: Path) -> LoggingManager:
    """Setup logging from the 'logging' section of the configuration"""
    logging_manager = LoggingManager(logging_config or {})
    logging_manager.setup_logging(logs_dir)
    return logging_manager


def setup_fallback_logging():
    """Console-only logging for when the configuration cannot be read"""
    logger.remove()
    logger.add(sys.stderr, level="INFO", format=CONSOLE_FORMAT, colorize=True)
