"""
Pytest configuration and fixtures for ER Wait Sampler tests
"""

import sys
import pytest
from datetime import datetime
from pathlib import Path
from unittest.mock import Mock
from zoneinfo import ZoneInfo

# Add project directory to path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

EASTERN = ZoneInfo("America/New_York")

SOURCE_URL = "https://wait.example.org/api/er"
TOKEN_URL = "https://oauth.example.org/token"
APPEND_URL = "https://sheets.example.org/v4/spreadsheets/abc/values/Sheet1!A1:append"

SOURCE_DOCUMENT = {
    "aveWaitMin": 77.44,
    "patientCount": 36,
    "longestWaitMin": 162,
    "lastUpdated": "1/1/1970 8:55:25 AM",
}


def make_response(status_code=200, json_data=None, json_error=None, text=""):
    """Fake requests.Response with just what the sampler reads"""
    response = Mock(status_code=status_code, text=text)
    if json_error is not None:
        response.json = Mock(side_effect=json_error)
    else:
        response.json = Mock(return_value=json_data)
    return response


@pytest.fixture
def project_root():
    """Fixture providing the project root directory"""
    return project_dir


@pytest.fixture
def capture_time():
    """Fixed capture time: 01/01/20 08:55:00 US Eastern"""
    return datetime(2020, 1, 1, 8, 55, 0, tzinfo=EASTERN)


@pytest.fixture
def source_session():
    """Session whose GET returns a well-formed wait-time document"""
    session = Mock()
    session.get.return_value = make_response(json_data=dict(SOURCE_DOCUMENT))
    return session


@pytest.fixture
def config_dir(tmp_path):
    """Empty config/ directory under a temporary project root"""
    directory = tmp_path / "config"
    directory.mkdir()
    return directory


@pytest.fixture
def write_config(config_dir):
    """Write a YAML config (and optional secrets) and return the config path"""
    def _write(text, secrets=None):
        path = config_dir / "config.yaml"
        path.write_text(text)
        if secrets is not None:
            (config_dir / "secrets.yaml").write_text(secrets)
        return path
    return _write
