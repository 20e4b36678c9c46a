"""Exceptions raised while sampling wait metrics"""
from typing import Optional


class SamplerError(Exception):
    """Base class for failures that abandon a single tick."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__


class NetworkError(SamplerError):
    """The endpoint was unreachable or the request timed out."""


class HttpStatusError(SamplerError):
    """The endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, url: str, body: Optional[str] = None):
        super().__init__(f"HTTP {status_code} from {url}")
        self.status_code = status_code
        self.url = url
        self.body = body


class ParseError(SamplerError):
    """The response body was not valid JSON or lacked a required field."""


class AuthError(SamplerError):
    """The OAuth refresh-token exchange failed."""


class ConfigError(ValueError):
    """The configuration file is missing or invalid."""
