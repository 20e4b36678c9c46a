"""
Test clock-aligned scheduling and tick bookkeeping
"""

import pytest
from datetime import datetime
from unittest.mock import Mock

from wait_sampler.config import ScheduleConfig
from wait_sampler.database import DatabaseManager
from wait_sampler.errors import NetworkError, ParseError
from wait_sampler.models import Sample
from wait_sampler.sampler import Sampler
from wait_sampler.scheduler import ClockAlignedJob, SamplerScheduler


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


class TestClockAlignedJob:
    """Test cron-like alignment"""

    def test_fifteen_minute_alignment(self):
        clock = FakeClock(datetime(2020, 1, 1, 8, 7, 30))
        job = ClockAlignedJob(15, Mock(), clock=clock)

        assert job.next_run == datetime(2020, 1, 1, 8, 15)

    def test_rolls_over_to_next_hour(self):
        clock = FakeClock(datetime(2020, 1, 1, 8, 55, 0))
        job = ClockAlignedJob(15, Mock(), clock=clock)

        assert job.next_run == datetime(2020, 1, 1, 9, 0)

    def test_rolls_over_to_next_day(self):
        clock = FakeClock(datetime(2020, 1, 1, 23, 50))
        job = ClockAlignedJob(15, Mock(), clock=clock)

        assert job.next_run == datetime(2020, 1, 2, 0, 0)

    def test_on_boundary_schedules_next_boundary(self):
        clock = FakeClock(datetime(2020, 1, 1, 8, 15, 0))
        job = ClockAlignedJob(15, Mock(), clock=clock)

        assert job.next_run == datetime(2020, 1, 1, 8, 30)

    def test_should_run_and_reschedule(self):
        clock = FakeClock(datetime(2020, 1, 1, 8, 7))
        func = Mock(return_value="done")
        job = ClockAlignedJob(15, func, clock=clock)

        assert not job.should_run()

        clock.now = datetime(2020, 1, 1, 8, 15, 1)
        assert job.should_run()
        assert job.run() == "done"
        assert job.next_run == datetime(2020, 1, 1, 8, 30)
        assert not job.should_run()

    def test_reschedules_even_when_job_raises(self):
        clock = FakeClock(datetime(2020, 1, 1, 8, 15, 1))
        job = ClockAlignedJob(15, Mock(side_effect=RuntimeError("boom")), clock=clock)

        clock.now = datetime(2020, 1, 1, 8, 30, 2)
        with pytest.raises(RuntimeError):
            job.run()
        assert job.next_run == datetime(2020, 1, 1, 8, 45)

    @pytest.mark.parametrize("interval", [0, 7, 45])
    def test_interval_must_divide_hour(self, interval):
        with pytest.raises(ValueError):
            ClockAlignedJob(interval, Mock())

    def test_string_representation(self):
        job = ClockAlignedJob(15, Mock(), clock=FakeClock(datetime(2020, 1, 1, 8, 7)))
        assert "Every 15 minutes" in str(job)
        assert "next run:" in str(job)


class TestSamplerScheduler:
    """Test tick wrapping and history recording"""

    @pytest.fixture
    def db_manager(self, tmp_path):
        return DatabaseManager(tmp_path / "sampler.db")

    def make_scheduler(self, sampler, db_manager, align=True):
        config = ScheduleConfig(interval_minutes=15, align_to_clock=align)
        return SamplerScheduler(sampler, config, db_manager=db_manager)

    def test_successful_tick_recorded(self, db_manager, capture_time):
        sampler = Mock(spec=Sampler)
        sampler.run_once.return_value = Sample(capture_time, 36, 77.44, 162)

        sample = self.make_scheduler(sampler, db_manager).run_tick()

        assert sample.patient_count == 36
        last = db_manager.get_last_tick()
        assert last.status == "success"
        assert last.longest_wait_minutes == 162

    @pytest.mark.parametrize("error", [ParseError("missing patientCount"), NetworkError("timed out")])
    def test_failed_tick_recorded_not_raised(self, db_manager, error):
        sampler = Mock(spec=Sampler)
        sampler.run_once.side_effect = error

        assert self.make_scheduler(sampler, db_manager).run_tick() is None

        last = db_manager.get_last_tick()
        assert last.status == "failed"
        assert last.error_kind == type(error).__name__
        assert last.error_message == error.message

    def test_unexpected_error_recorded(self, db_manager):
        sampler = Mock(spec=Sampler)
        sampler.run_once.side_effect = OSError("disk full")

        assert self.make_scheduler(sampler, db_manager).run_tick() is None
        assert db_manager.get_last_tick().error_kind == "OSError"

    def test_each_tick_is_independent(self, db_manager, capture_time):
        sampler = Mock(spec=Sampler)
        sampler.run_once.side_effect = [NetworkError("down"), Sample(capture_time, 1, 2, 3)]
        scheduler = self.make_scheduler(sampler, db_manager)

        scheduler.run_tick()
        scheduler.run_tick()

        assert sampler.run_once.call_count == 2
        assert [r.status for r in db_manager.get_recent_ticks()] == ["success", "failed"]

    def test_relative_schedule_uses_schedule_library(self, db_manager):
        scheduler = self.make_scheduler(Mock(spec=Sampler), db_manager, align=False)

        assert scheduler.next_run is not None
        assert (scheduler.next_run - datetime.now()).total_seconds() > 14 * 60

    def test_aligned_schedule_next_run(self, db_manager):
        scheduler = self.make_scheduler(Mock(spec=Sampler), db_manager)

        assert scheduler.next_run.minute % 15 == 0
        assert scheduler.next_run.second == 0

    def test_status(self, db_manager):
        sampler = Mock(spec=Sampler)
        sampler.sink = Mock()
        sampler.sink.name = "file"
        sampler.run_once.side_effect = ParseError("bad")
        scheduler = self.make_scheduler(sampler, db_manager)
        scheduler.run_tick()

        status = scheduler.get_status()

        assert status["interval_minutes"] == 15
        assert status["sink"] == "file"
        assert status["total_ticks"] == 1
        assert status["failed_ticks"] == 1
