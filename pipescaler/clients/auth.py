"""
Azure AD access tokens via the OAuth2 client-credentials flow.
"""

import asyncio
import logging
import time
from typing import Dict, Optional, Tuple

import aiohttp

from .http import HttpClient
from ..config import AzureCredentialConfig
from ..exceptions import AuthenticationError, ConfigurationError, ErrorContext

LOG = logging.getLogger(__name__)

ARM_SCOPE = "https://management.azure.com/.default"
STORAGE_SCOPE = "https://storage.azure.com/.default"

# Refresh this many seconds before the token actually expires.
EXPIRY_SKEW_SECONDS = 120


class AzureTokenProvider(HttpClient):
    """Fetches and caches one bearer token per scope"""

    def __init__(self, config: AzureCredentialConfig, timeout: float = 30.0,
                 session: Optional[aiohttp.ClientSession] = None):
        super().__init__(timeout=timeout, session=session)
        self.config = config
        self._tokens: Dict[str, Tuple[str, float]] = {}
        self._lock = asyncio.Lock()

    @property
    def token_url(self) -> str:
        return f"{self.config.authority}/{self.config.tenant_id}/oauth2/v2.0/token"

    async def get_token(self, scope: str) -> str:
        async with self._lock:
            cached = self._tokens.get(scope)
            if cached and cached[1] > time.monotonic():
                return cached[0]

            token, expires_in = await self._request_token(scope)
            self._tokens[scope] = (token, time.monotonic() + max(expires_in - EXPIRY_SKEW_SECONDS, 0))
            LOG.debug(f"Acquired token for {scope}, expires in {expires_in}s")
            return token

    async def authorization_header(self, scope: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {await self.get_token(scope)}"}

    async def _request_token(self, scope: str) -> Tuple[str, int]:
        if not (self.config.tenant_id and self.config.client_id and self.config.client_secret):
            raise ConfigurationError("Azure tenant_id, client_id and client_secret must be set")

        with ErrorContext("acquire_token", "AzureTokenProvider").add_context(scope=scope):
            response = await self._send("POST", self.token_url, data={
                "grant_type": "client_credentials",
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "scope": scope,
            })
            if response.status != 200:
                raise AuthenticationError(
                    "Token request rejected",
                    status=response.status,
                    context={"body": response.text[:500]}
                )
            body = response.json() or {}
            token = body.get("access_token")
            if not token:
                raise AuthenticationError("Token response has no access_token", status=response.status)
            return token, int(body.get("expires_in", 3600))
