"""
In-process scheduler that invokes the sampler on a fixed interval
"""

import time
import signal
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional
import schedule
from loguru import logger

from .config import ScheduleConfig
from .database import DatabaseManager, TickRecord
from .errors import SamplerError
from .logging_config import tick_logger
from .models import Sample
from .sampler import Sampler


class ClockAlignedJob:
    """
    A job that runs every N minutes aligned to clock boundaries, the way
    cron does (:00, :15, :30, :45 for a 15 minute interval)
    """
    def __init__(self, interval: int, job_func: Callable, clock: Callable[[], datetime] = datetime.now):
        if interval < 1 or 60 % interval != 0:
            raise ValueError(f"Interval must divide 60 minutes, got {interval}")
        self.interval = interval
        self.job_func = job_func
        self.clock = clock
        self.last_run = None
        self.next_run = self._calculate_next_run()

    def _calculate_next_run(self) -> datetime:
        """Calculate next run time aligned to clock boundaries"""
        now = self.clock()
        next_minute = ((now.minute // self.interval) + 1) * self.interval

        if next_minute >= 60:
            # Move to next hour
            return now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
        return now.replace(minute=next_minute, second=0, microsecond=0)

    def should_run(self) -> bool:
        """Check if this job should run now"""
        return self.clock() >= self.next_run

    def run(self):
        """Run the job and reschedule"""
        self.last_run = self.clock()
        try:
            return self.job_func()
        finally:
            self.next_run = self._calculate_next_run()

    def __str__(self):
        return f"Every {self.interval} minutes (next run: {self.next_run})"


class SamplerScheduler:
    """Runs one sampler tick per interval until stopped"""

    def __init__(self, sampler: Sampler, schedule_config: ScheduleConfig,
                 db_manager: Optional[DatabaseManager] = None, retention_days: int = 90):
        self.sampler = sampler
        self.schedule_config = schedule_config
        self.db_manager = db_manager
        self.retention_days = retention_days
        self.running = False

        self._aligned_job: Optional[ClockAlignedJob] = None
        self._scheduler = schedule.Scheduler()

        interval = schedule_config.interval_minutes
        if schedule_config.align_to_clock:
            self._aligned_job = ClockAlignedJob(interval, self.run_tick)
        else:
            self._scheduler.every(interval).minutes.do(self.run_tick)

    @property
    def next_run(self) -> Optional[datetime]:
        if self._aligned_job is not None:
            return self._aligned_job.next_run
        return self._scheduler.next_run

    def run_tick(self) -> Optional[Sample]:
        """
        Run one sampling attempt and record the outcome.

        Tick failures are logged and recorded, never re-raised; the next
        tick is an independent attempt.
        """
        tick_time = datetime.now().astimezone()
        log = tick_logger(tick_time)
        log.info("Tick started")

        start_time = time.time()
        sample = None
        error_kind = None
        error_message = None

        try:
            sample = self.sampler.run_once()
        except SamplerError as e:
            error_kind = e.kind
            error_message = e.message
            log.error(f"Tick failed ({error_kind}): {error_message}")
        except Exception as e:
            error_kind = type(e).__name__
            error_message = str(e)
            log.exception(f"Tick failed with unexpected error: {e}")

        duration = time.time() - start_time
        if sample is not None:
            log.info(f"Tick completed in {duration:.2f}s")

        self._record(TickRecord(
            tick_time=tick_time,
            status="success" if sample is not None else "failed",
            duration=duration,
            error_kind=error_kind,
            error_message=error_message,
            patient_count=sample.patient_count if sample else None,
            average_wait_minutes=sample.average_wait_minutes if sample else None,
            longest_wait_minutes=sample.longest_wait_minutes if sample else None,
        ))
        return sample

    def _record(self, record: TickRecord):
        if self.db_manager is None:
            return
        try:
            self.db_manager.record_tick(record)
        except Exception as e:
            logger.error(f"Failed to record tick history: {e}")

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals"""
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        self.stop()

    def start(self):
        """Start the scheduler loop; returns when stop() is called"""
        logger.info(
            f"Starting sampler: every {self.schedule_config.interval_minutes} minutes "
            f"({'clock aligned' if self.schedule_config.align_to_clock else 'relative'})"
        )

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        self.running = True
        if self.schedule_config.run_on_start:
            self.run_tick()

        self._main_loop()

    def stop(self):
        """Stop the scheduler"""
        logger.info("Stopping sampler")
        self.running = False

    def run_pending(self):
        """Run any tick that is due"""
        if self._aligned_job is not None:
            if self._aligned_job.should_run():
                self._aligned_job.run()
        else:
            self._scheduler.run_pending()

    def cleanup_history(self):
        if self.db_manager is None:
            return
        try:
            removed = self.db_manager.cleanup_old_ticks(self.retention_days)
            if removed:
                logger.info(f"Removed {removed} tick records older than {self.retention_days} days")
        except Exception as e:
            logger.error(f"Failed to clean up tick history: {e}")

    def _main_loop(self):
        """Main scheduler loop"""
        last_cleanup = 0.0

        while self.running:
            try:
                self.run_pending()

                # History cleanup once a day
                if time.time() - last_cleanup >= 86400:
                    self.cleanup_history()
                    last_cleanup = time.time()

                logger.debug(f"Next tick at {self.next_run}")
                time.sleep(1)

            except Exception as e:
                logger.error(f"Error in main loop: {e}")
                time.sleep(1)

        logger.info("Main loop stopped")

    def get_status(self) -> Dict:
        """Get scheduler status information"""
        status = {
            "running": self.running,
            "interval_minutes": self.schedule_config.interval_minutes,
            "next_run": self.next_run,
            "sink": self.sampler.sink.name,
        }
        if self.db_manager is not None:
            status["total_ticks"] = self.db_manager.count_ticks()
            status["failed_ticks"] = self.db_manager.count_ticks("failed")
            status["last_tick"] = self.db_manager.get_last_tick()
        return status
