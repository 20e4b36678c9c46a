"""
OAuth refresh-token exchange for the spreadsheet sink
"""

from typing import Optional

import requests
from loguru import logger

from .errors import AuthError
from .source import DEFAULT_TIMEOUT, is_success

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


class CredentialsProvider:
    """Anything that can hand out a bearer token for one request"""

    def get_access_token(self) -> str:
        raise NotImplementedError


class RefreshTokenCredentials(CredentialsProvider):
    """
    Exchanges a long-lived refresh token for a short-lived access token.

    A new exchange is made on every call; tokens are not cached between
    ticks.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        token_url: str = GOOGLE_TOKEN_URL,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.token_url = token_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_access_token(self) -> str:
        form = {
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'grant_type': 'refresh_token',
            'refresh_token': self.refresh_token,
        }

        try:
            response = self.session.post(self.token_url, data=form, timeout=self.timeout)
        except requests.RequestException as e:
            raise AuthError(f"Token endpoint {self.token_url} unreachable: {e}") from e

        if not is_success(response.status_code):
            raise AuthError(f"Token exchange rejected with HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError(f"Token endpoint returned invalid JSON: {e}") from e

        token = payload.get('access_token') if isinstance(payload, dict) else None
        if not token:
            raise AuthError("Token endpoint response has no access_token")

        logger.debug(f"Obtained access token (expires_in={payload.get('expires_in')})")
        return token
