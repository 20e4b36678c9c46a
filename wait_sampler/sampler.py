"""
Sampler - one tick of fetch, timestamp, append
"""

from datetime import datetime
from functools import partial
from typing import Callable, Optional
from zoneinfo import ZoneInfo

import requests
from loguru import logger

from .auth import RefreshTokenCredentials
from .config import AppConfig, SheetsConfig
from .models import (
    Sample, PATIENT_COUNT_FIELD, AVERAGE_WAIT_FIELD, LONGEST_WAIT_FIELD, DEFAULT_TIMEZONE, local_now,
)
from .sinks import Sink, CsvFileSink, SheetsSink
from .source import WaitTimeSource


class Sampler:
    """Fetches the current wait metrics and appends them to a sink"""

    def __init__(self, source: WaitTimeSource, sink: Sink,
                 clock: Optional[Callable[[], datetime]] = None, tz: str = DEFAULT_TIMEZONE):
        self.source = source
        self.sink = sink
        self.tz = ZoneInfo(tz)
        self.clock = clock or partial(local_now, tz)

    def run_once(self, now: Optional[datetime] = None) -> Sample:
        """
        Run a single tick.

        Args:
            now: Capture time to stamp the sample with. Defaults to the
                 sampler's clock, read once the response has arrived.
                 Aware times are converted to the sampler's timezone;
                 naive times are taken as already local.

        Returns:
            The appended Sample

        Raises:
            SamplerError: any failure; nothing is appended unless the fetch
                          and parse both succeeded
        """
        fields = self.source.fetch()

        captured_at = now if now is not None else self.clock()
        if captured_at.tzinfo is not None:
            captured_at = captured_at.astimezone(self.tz)
        sample = Sample(
            captured_at=captured_at,
            patient_count=fields[PATIENT_COUNT_FIELD],
            average_wait_minutes=fields[AVERAGE_WAIT_FIELD],
            longest_wait_minutes=fields[LONGEST_WAIT_FIELD],
        )

        self.sink.append(sample)
        logger.info(
            f"Sample {sample.timestamp}: patients={sample.patient_count} "
            f"avg={sample.average_wait_minutes} longest={sample.longest_wait_minutes} -> {self.sink.name}"
        )
        return sample


def build_sheets_sink(sheets: SheetsConfig, session: requests.Session) -> SheetsSink:
    """Spreadsheet sink with a refresh-token credentials provider"""
    credentials = RefreshTokenCredentials(
        client_id=sheets.credentials.client_id,
        client_secret=sheets.credentials.client_secret,
        refresh_token=sheets.credentials.refresh_token,
        token_url=sheets.token_url,
        session=session,
        timeout=sheets.timeout,
    )
    return SheetsSink(sheets.append_url, credentials, session=session, timeout=sheets.timeout)


def build_sink(config: AppConfig, session: requests.Session) -> Sink:
    """Create the sink selected by sink.kind"""
    if config.sink.kind == "file":
        return CsvFileSink(config.sink.file_path)
    return build_sheets_sink(config.sink.sheets, session)


def build_sampler(config: AppConfig, session: Optional[requests.Session] = None) -> Sampler:
    """Wire a Sampler from loaded configuration"""
    session = session or requests.Session()
    source = WaitTimeSource(config.source.url, session=session, timeout=config.source.timeout)
    return Sampler(source, build_sink(config, session), tz=config.timezone)
