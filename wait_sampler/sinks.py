"""
Sinks - durable, append-only destinations for samples
"""

import os
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

import requests
from loguru import logger

from .auth import CredentialsProvider
from .errors import NetworkError, HttpStatusError
from .models import Sample
from .source import DEFAULT_TIMEOUT, is_success

SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"


class Sink:
    """Base class for sample destinations"""

    name = "sink"

    def append(self, sample: Sample) -> None:
        raise NotImplementedError


class CsvFileSink(Sink):
    """Appends one comma-separated line per sample to a flat file"""

    name = "file"

    def __init__(self, path: Path):
        self.path = Path(path)

    def append(self, sample: Sample) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        line = sample.to_csv_line()
        with open(self.path, 'a', encoding='utf-8') as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())

        logger.debug(f"Appended sample to {self.path}: {line.strip()}")


def build_append_url(spreadsheet_id: str, cell_range: str = "Sheet1!A1",
                     value_input_option: str = "USER_ENTERED") -> str:
    """Google Sheets values:append URL for a spreadsheet and range"""
    return (
        f"{SHEETS_API_BASE}/{quote(spreadsheet_id, safe='')}/values/"
        f"{quote(cell_range, safe='!:')}:append?valueInputOption={value_input_option}"
    )


class SheetsSink(Sink):
    """Appends samples as rows through an OAuth-protected HTTP API"""

    name = "sheets"

    def __init__(
        self,
        append_url: str,
        credentials: CredentialsProvider,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.append_url = append_url
        self.credentials = credentials
        self.session = session or requests.Session()
        self.timeout = timeout

    def append(self, sample: Sample) -> None:
        self.append_many([sample])

    def append_many(self, samples: List[Sample]) -> None:
        """Append several rows in one request, in the given order"""
        if not samples:
            return

        # Token is refreshed before every append
        token = self.credentials.get_access_token()

        headers = {
            'Authorization': f"Bearer {token}",
            'Content-Type': 'application/json',
        }
        payload = {'values': [sample.to_row() for sample in samples]}

        try:
            response = self.session.post(
                self.append_url, json=payload, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise NetworkError(f"POST {self.append_url} failed: {e}") from e

        if not is_success(response.status_code):
            raise HttpStatusError(response.status_code, self.append_url, getattr(response, 'text', None))

        logger.debug(f"Appended {len(samples)} row(s) to spreadsheet, last: {payload['values'][-1]}")
