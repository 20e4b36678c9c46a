"""
Wait-time endpoint client: one GET, one JSON projection
"""

import json
import math
from typing import Any, Dict, Optional

import requests
from loguru import logger

from .errors import NetworkError, HttpStatusError, ParseError
from .models import (
    Number, REQUIRED_FIELDS, PATIENT_COUNT_FIELD, AVERAGE_WAIT_FIELD, LONGEST_WAIT_FIELD,
)

DEFAULT_TIMEOUT = 10.0
USER_AGENT = "er-wait-sampler/1.0"


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def fetch_document(session: requests.Session, url: str, timeout: float = DEFAULT_TIMEOUT) -> Any:
    """
    GET the endpoint and decode the body as JSON.

    Raises:
        NetworkError: connection failure or timeout
        HttpStatusError: non-2xx response
        ParseError: body is not valid JSON
    """
    headers = {
        'User-Agent': USER_AGENT,
        'Accept': 'application/json',
    }

    try:
        response = session.get(url, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise NetworkError(f"GET {url} failed: {e}") from e

    if not is_success(response.status_code):
        raise HttpStatusError(response.status_code, url, getattr(response, 'text', None))

    try:
        return response.json()
    except ValueError as e:
        raise ParseError(f"Response from {url} is not valid JSON: {e}") from e


def _require_number(document: Dict[str, Any], field: str) -> Number:
    value = document[field]
    # bool is an int subclass but never a valid measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"Field '{field}' is not numeric: {value!r}")
    if not math.isfinite(value) or value < 0:
        raise ParseError(f"Field '{field}' must be a non-negative number: {value!r}")
    return value


def extract_fields(document: Any) -> Dict[str, Number]:
    """
    Project the endpoint document onto the three required fields.

    Values are returned exactly as decoded; 'lastUpdated' and any other
    keys are ignored.
    """
    if not isinstance(document, dict):
        raise ParseError(f"Expected a JSON object, got {type(document).__name__}")

    missing = [field for field in REQUIRED_FIELDS if field not in document]
    if missing:
        raise ParseError(f"Missing required field(s): {', '.join(missing)}")

    patient_count = _require_number(document, PATIENT_COUNT_FIELD)
    if not isinstance(patient_count, int):
        raise ParseError(f"Field '{PATIENT_COUNT_FIELD}' must be an integer: {patient_count!r}")

    return {
        PATIENT_COUNT_FIELD: patient_count,
        AVERAGE_WAIT_FIELD: _require_number(document, AVERAGE_WAIT_FIELD),
        LONGEST_WAIT_FIELD: _require_number(document, LONGEST_WAIT_FIELD),
    }


class WaitTimeSource:
    """Reads the current wait metrics from the public endpoint"""

    def __init__(self, url: str, session: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self) -> Dict[str, Number]:
        document = fetch_document(self.session, self.url, self.timeout)
        fields = extract_fields(document)
        logger.debug(f"Fetched wait metrics: {json.dumps(fields)}")
        return fields
