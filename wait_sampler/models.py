"""
Sample model - one timestamped observation of ER wait metrics
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Union
from zoneinfo import ZoneInfo

Number = Union[int, float]

TIMESTAMP_FORMAT = "%m/%d/%y %H:%M:%S"
DEFAULT_TIMEZONE = "America/New_York"

# Field names used by the wait-time endpoint
PATIENT_COUNT_FIELD = "patientCount"
AVERAGE_WAIT_FIELD = "aveWaitMin"
LONGEST_WAIT_FIELD = "longestWaitMin"
REQUIRED_FIELDS = (PATIENT_COUNT_FIELD, AVERAGE_WAIT_FIELD, LONGEST_WAIT_FIELD)


@dataclass(frozen=True)
class Sample:
    """Represents a single wait-time observation"""
    captured_at: datetime
    patient_count: int
    average_wait_minutes: Number
    longest_wait_minutes: Number

    @property
    def timestamp(self) -> str:
        """Capture time in MM/DD/YY HH:MM:SS"""
        return self.captured_at.strftime(TIMESTAMP_FORMAT)

    def to_row(self) -> List[Union[str, Number]]:
        """Row layout shared by the CSV log and the spreadsheet"""
        return [
            self.timestamp,
            self.patient_count,
            self.average_wait_minutes,
            self.longest_wait_minutes,
        ]

    def to_csv_line(self) -> str:
        return ",".join(str(value) for value in self.to_row()) + "\n"

    @classmethod
    def from_csv_line(cls, line: str, tz: str = DEFAULT_TIMEZONE) -> "Sample":
        """Parse a line previously written by to_csv_line()"""
        parts = line.strip().split(",")
        if len(parts) != 4:
            raise ValueError(f"Expected 4 comma-separated fields, got {len(parts)}: {line!r}")

        captured_at = datetime.strptime(parts[0], TIMESTAMP_FORMAT).replace(tzinfo=ZoneInfo(tz))
        return cls(
            captured_at=captured_at,
            patient_count=int(parts[1]),
            average_wait_minutes=_parse_number(parts[2]),
            longest_wait_minutes=_parse_number(parts[3]),
        )


def _parse_number(text: str) -> Number:
    try:
        return int(text)
    except ValueError:
        return float(text)


def local_now(tz: str = DEFAULT_TIMEZONE) -> datetime:
    """Current wall-clock time in the sampler's timezone"""
    return datetime.now(ZoneInfo(tz))
