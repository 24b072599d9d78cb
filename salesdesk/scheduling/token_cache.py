"""
Tool: Token Cache
Purpose: OAuth 2.0 client-credentials token for Microsoft Graph, cached until near expiry

The scheduler authenticates as itself (not as an end user), so there is no
refresh token: when the cached token is within the refresh margin of its
expiry a fresh client-credentials exchange is made and the cached token is
replaced.

Usage:
    from salesdesk.scheduling.token_cache import TokenCache

    cache = TokenCache(MicrosoftCredentials.from_env())
    token = await cache.get_token()

Dependencies:
    - httpx (pip install httpx)
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import httpx

from salesdesk.logging_config import get_logger
from salesdesk.scheduling.config_models import MicrosoftCredentials
from salesdesk.scheduling.errors import AuthError
from salesdesk.scheduling.models import CachedToken

logger = get_logger(__name__)


MICROSOFT_TOKEN_URL = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"

DEFAULT_EXPIRES_IN = 3600


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCache:
    """
    Holds one bearer token for one set of client credentials.

    Concurrent callers that find the token stale wait on a single refresh
    instead of each starting their own exchange.
    """

    def __init__(
        self,
        credentials: MicrosoftCredentials,
        refresh_margin: timedelta = timedelta(minutes=5),
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = _utcnow,
        token_url: str = MICROSOFT_TOKEN_URL,
    ):
        self.credentials = credentials
        self.refresh_margin = refresh_margin
        self.timeout = timeout
        self._transport = transport
        self._clock = clock
        self._token_url = token_url
        self._token: CachedToken | None = None
        self._lock = asyncio.Lock()

    def _cached(self) -> str | None:
        if self._token and self._token.is_fresh(self._clock(), self.refresh_margin):
            return self._token.access_token
        return None

    async def get_token(self) -> str:
        """
        Get a bearer token, exchanging credentials only when needed.

        Raises:
            ConfigurationError: If tenant, client id or secret is missing
            AuthError: If the identity provider rejects the exchange
        """
        token = self._cached()
        if token:
            return token

        async with self._lock:
            # Another task may have refreshed while we waited
            token = self._cached()
            if token:
                return token

            self._token = await self._fetch_token()
            return self._token.access_token

    def invalidate(self) -> None:
        """Drop the cached token so the next call exchanges again."""
        self._token = None

    async def _fetch_token(self) -> CachedToken:
        tenant_id, client_id, client_secret = self.credentials.require()

        token_data = {
            "client_id": client_id,
            "client_secret": client_secret,
            "scope": GRAPH_SCOPE,
            "grant_type": "client_credentials",
        }
        url = self._token_url.format(tenant=tenant_id)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, data=token_data)
        except httpx.HTTPError as e:
            logger.error("token_request_failed", error=str(e))
            raise AuthError(f"Token request failed: {e!s}") from e

        if resp.status_code != 200:
            logger.error("token_rejected", status=resp.status_code, detail=resp.text[:300])
            raise AuthError(f"Failed to get access token: HTTP {resp.status_code}")

        try:
            tokens = resp.json()
        except ValueError as e:
            raise AuthError("Token endpoint returned a non-JSON body") from e

        access_token = tokens.get("access_token")
        if not access_token:
            raise AuthError("Token endpoint response has no access_token")

        expires_in = int(tokens.get("expires_in", DEFAULT_EXPIRES_IN))
        expires_at = self._clock() + timedelta(seconds=expires_in)
        logger.info("token_refreshed", expires_at=expires_at.isoformat())

        return CachedToken(access_token=access_token, expires_at=expires_at)
