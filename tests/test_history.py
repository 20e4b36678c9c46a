"""
Test reading the sample log back and gap detection
"""

from datetime import timedelta

from wait_sampler.history import read_samples, find_gaps
from wait_sampler.models import Sample

LOG = """01/01/20 08:00:00,30,60.5,120
01/01/20 08:15:00,31,61,121
01/01/20 08:30:00,32,62.25,122

01/01/20 09:30:00,33,63,123
"""


def test_read_samples_in_file_order(tmp_path):
    path = tmp_path / "wait_times.csv"
    path.write_text(LOG)

    samples = read_samples(path)

    assert [s.patient_count for s in samples] == [30, 31, 32, 33]
    assert samples[1].average_wait_minutes == 61
    assert isinstance(samples[1].average_wait_minutes, int)
    assert str(samples[0].captured_at.tzinfo) == "America/New_York"


def test_read_samples_skips_malformed_lines(tmp_path):
    path = tmp_path / "wait_times.csv"
    path.write_text("garbage\n01/01/20 08:00:00,30,60.5,120\n01/01/20 08:15:00,x,1,2\n")

    samples = read_samples(path)

    assert len(samples) == 1
    assert samples[0].timestamp == "01/01/20 08:00:00"


def test_find_gaps(tmp_path):
    path = tmp_path / "wait_times.csv"
    path.write_text(LOG)

    gaps = find_gaps(read_samples(path), interval_minutes=15)

    assert len(gaps) == 1
    assert gaps[0].previous.timestamp == "01/01/20 08:30:00"
    assert gaps[0].next.timestamp == "01/01/20 09:30:00"
    assert gaps[0].missing_ticks == 3


def test_small_jitter_is_not_a_gap(capture_time):
    samples = [
        Sample(capture_time, 1, 1, 1),
        Sample(capture_time + timedelta(minutes=15, seconds=40), 1, 1, 1),
        Sample(capture_time + timedelta(minutes=31), 1, 1, 1),
    ]

    assert find_gaps(samples, interval_minutes=15) == []


def test_no_samples_no_gaps():
    assert find_gaps([], interval_minutes=15) == []


def test_spring_forward_is_not_a_gap(tmp_path):
    path = tmp_path / "wait_times.csv"
    path.write_text("03/08/20 01:30:00,1,1,1\n03/08/20 01:45:00,1,1,1\n03/08/20 03:00:00,1,1,1\n")

    assert find_gaps(read_samples(path), interval_minutes=15) == []


def test_gap_across_spring_forward_counts_real_time(tmp_path):
    path = tmp_path / "wait_times.csv"
    path.write_text("03/08/20 01:30:00,1,1,1\n03/08/20 03:15:00,1,1,1\n")

    gaps = find_gaps(read_samples(path), interval_minutes=15)

    assert len(gaps) == 1
    assert gaps[0].missing_ticks == 2
