"""
Read the CSV sample log back and find gaps left by failed or missed ticks
"""

from datetime import timedelta
from pathlib import Path
from typing import List, NamedTuple

from loguru import logger

from .models import Sample, DEFAULT_TIMEZONE


class Gap(NamedTuple):
    previous: Sample
    next: Sample
    missing_ticks: int


def read_samples(path: Path, tz: str = DEFAULT_TIMEZONE) -> List[Sample]:
    """Parse every well-formed line of the sample log, in file order"""
    samples = []
    with open(path, 'r', encoding='utf-8') as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                samples.append(Sample.from_csv_line(line, tz))
            except ValueError as e:
                logger.warning(f"Skipping malformed line {line_number} in {path}: {e}")
    return samples


def find_gaps(samples: List[Sample], interval_minutes: int = 15, tolerance: float = 1.5) -> List[Gap]:
    """
    Find consecutive samples further apart than interval * tolerance.

    Args:
        samples: Samples in log order
        interval_minutes: Expected spacing between ticks
        tolerance: Multiple of the interval allowed before a gap is reported

    Returns:
        One Gap per hole, with the number of ticks that should have landed in it
    """
    interval = timedelta(minutes=interval_minutes)
    threshold = interval * tolerance
    gaps = []

    for previous, current in zip(samples, samples[1:]):
        # Same-zone subtraction ignores DST offsets; compare epoch seconds
        elapsed = timedelta(seconds=current.captured_at.timestamp() - previous.captured_at.timestamp())
        if elapsed > threshold:
            missing = round(elapsed / interval) - 1
            gaps.append(Gap(previous, current, max(missing, 1)))

    return gaps
