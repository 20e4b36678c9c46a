"""
Configuration loading for the sampler

Main settings live in config/config.yaml; OAuth credentials live in a
separate secrets file next to it (config/secrets.yaml by default).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .errors import ConfigError
from .models import DEFAULT_TIMEZONE
from .auth import GOOGLE_TOKEN_URL
from .sinks import build_append_url
from .source import DEFAULT_TIMEOUT

SINK_KINDS = ("file", "sheets")


def get_project_root() -> Path:
    """Get the project root directory"""
    # This module is in wait_sampler/, so project root is parent directory
    return Path(__file__).parent.parent


@dataclass(frozen=True)
class SourceConfig:
    url: str
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class Credentials:
    client_id: str
    client_secret: str
    refresh_token: str


@dataclass(frozen=True)
class SheetsConfig:
    append_url: str
    token_url: str = GOOGLE_TOKEN_URL
    timeout: float = DEFAULT_TIMEOUT
    credentials: Optional[Credentials] = None


@dataclass(frozen=True)
class SinkConfig:
    kind: str  # "file" | "sheets"
    file_path: Optional[Path] = None
    sheets: Optional[SheetsConfig] = None


@dataclass(frozen=True)
class ScheduleConfig:
    interval_minutes: int = 15
    align_to_clock: bool = True
    run_on_start: bool = False


@dataclass(frozen=True)
class DatabaseConfig:
    path: Path
    retention_days: int = 90


@dataclass(frozen=True)
class AppConfig:
    source: SourceConfig
    sink: SinkConfig
    database: DatabaseConfig
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    timezone: str = DEFAULT_TIMEZONE
    logging: Dict[str, Any] = field(default_factory=dict)
    base_dir: Path = field(default_factory=get_project_root)


def load_yaml(path: Path) -> Dict[str, Any]:
    """Read a YAML mapping; an empty file yields an empty dict"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a YAML mapping at top level.")
    return data


def get_config_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a configuration value using dot notation.

    Examples:
        get_config_value(raw, "sink.file.path")
        get_config_value(raw, "schedule.interval_minutes", default=15)
    """
    value = config
    try:
        for key in key_path.split('.'):
            value = value[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def resolve_path(base_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


def _positive_number(raw: Dict[str, Any], key_path: str, default: float) -> float:
    value = get_config_value(raw, key_path, default)
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{key_path}' must be a number, got {value!r}") from e
    if number <= 0:
        raise ConfigError(f"'{key_path}' must be positive, got {value!r}")
    return number


def load_credentials(path: Path) -> Credentials:
    """Load OAuth client credentials and refresh token from a secrets file"""
    data = load_yaml(path)
    missing = [key for key in ("client_id", "client_secret", "refresh_token") if not data.get(key)]
    if missing:
        raise ConfigError(f"Secrets file {path} is missing: {', '.join(missing)}")

    return Credentials(
        client_id=str(data["client_id"]),
        client_secret=str(data["client_secret"]),
        refresh_token=str(data["refresh_token"]),
    )


def load_sheets_config(raw: Dict[str, Any], config_dir: Path) -> SheetsConfig:
    append_url = get_config_value(raw, "sink.sheets.append_url")
    if not append_url:
        spreadsheet_id = get_config_value(raw, "sink.sheets.spreadsheet_id")
        if not spreadsheet_id:
            raise ConfigError("sink.sheets needs either 'append_url' or 'spreadsheet_id'")
        append_url = build_append_url(
            str(spreadsheet_id),
            str(get_config_value(raw, "sink.sheets.range", "Sheet1!A1")),
            str(get_config_value(raw, "sink.sheets.value_input_option", "USER_ENTERED")),
        )

    secrets_file = get_config_value(raw, "sink.sheets.secrets_file", "secrets.yaml")
    credentials = load_credentials(resolve_path(config_dir, secrets_file))

    return SheetsConfig(
        append_url=str(append_url),
        token_url=str(get_config_value(raw, "sink.sheets.token_url", GOOGLE_TOKEN_URL)),
        timeout=_positive_number(raw, "sink.sheets.timeout", DEFAULT_TIMEOUT),
        credentials=credentials,
    )


def load_app_config(path: Path) -> AppConfig:
    """
    Load and validate the sampler configuration.

    Relative data paths resolve against the project root (the parent of the
    config directory); the secrets file resolves against the config directory.

    Raises:
        ConfigError: missing file, bad YAML, or an invalid/missing setting
    """
    path = Path(path).absolute()
    raw = load_yaml(path)
    config_dir = path.parent
    base_dir = config_dir.parent

    url = get_config_value(raw, "source.url")
    if not url:
        raise ConfigError("'source.url' is required")
    source = SourceConfig(url=str(url), timeout=_positive_number(raw, "source.timeout", DEFAULT_TIMEOUT))

    timezone = str(get_config_value(raw, "timezone", DEFAULT_TIMEZONE))
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Unknown timezone: {timezone}") from e

    kind = str(get_config_value(raw, "sink.kind", "file")).lower()
    if kind not in SINK_KINDS:
        raise ConfigError(f"'sink.kind' must be one of {', '.join(SINK_KINDS)}, got {kind!r}")

    if kind == "file":
        sink = SinkConfig(
            kind=kind,
            file_path=resolve_path(base_dir, get_config_value(raw, "sink.file.path", "data/wait_times.csv")),
        )
    else:
        sink = SinkConfig(kind=kind, sheets=load_sheets_config(raw, config_dir))

    interval = get_config_value(raw, "schedule.interval_minutes", 15)
    if not isinstance(interval, int) or isinstance(interval, bool) or not 1 <= interval <= 60:
        raise ConfigError(f"'schedule.interval_minutes' must be an integer between 1 and 60, got {interval!r}")
    if get_config_value(raw, "schedule.align_to_clock", True) and 60 % interval != 0:
        raise ConfigError(f"'schedule.interval_minutes' must divide 60 when align_to_clock is set, got {interval}")

    schedule_config = ScheduleConfig(
        interval_minutes=interval,
        align_to_clock=bool(get_config_value(raw, "schedule.align_to_clock", True)),
        run_on_start=bool(get_config_value(raw, "schedule.run_on_start", False)),
    )

    database = DatabaseConfig(
        path=resolve_path(base_dir, get_config_value(raw, "database.path", "data/sampler.db")),
        retention_days=int(get_config_value(raw, "database.retention_days", 90)),
    )

    return AppConfig(
        source=source,
        sink=sink,
        database=database,
        schedule=schedule_config,
        timezone=timezone,
        logging=dict(get_config_value(raw, "logging", {})),
        base_dir=base_dir,
    )
