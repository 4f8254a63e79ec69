"""
Shared aiohttp plumbing for the service clients.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import aiohttp

from ..exceptions import ExternalServiceError

LOG = logging.getLogger(__name__)

USER_AGENT = "pipescaler/0.1"


@dataclass
class HttpResponse:
    """Fully-read HTTP response"""
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    text: str = ""

    def json(self) -> Any:
        if not self.text:
            return None
        try:
            return json.loads(self.text)
        except ValueError as e:
            raise ExternalServiceError(
                "Response body is not valid JSON",
                status=self.status,
                context={"body": self.text[:200]}
            ) from e


class HttpClient:
    """
    Base class holding one lazily-created aiohttp session.
    """

    def __init__(self, timeout: float = 30.0, session: Optional[aiohttp.ClientSession] = None):
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": USER_AGENT}
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if we created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def _send(self, method: str, url: str, *,
                    headers: Optional[Dict[str, str]] = None,
                    params: Optional[Dict[str, str]] = None,
                    json_body: Any = None,
                    data: Any = None,
                    auth: Optional[aiohttp.BasicAuth] = None) -> HttpResponse:
        """Send a request and read the whole body; transport failures raise ExternalServiceError"""
        session = await self._ensure_session()
        LOG.debug(f"{method} {url}")
        try:
            async with session.request(method, url, headers=headers, params=params,
                                       json=json_body, data=data, auth=auth) as resp:
                text = await resp.text()
                return HttpResponse(status=resp.status, headers=dict(resp.headers), text=text)
        except asyncio.TimeoutError as e:
            raise ExternalServiceError(f"{method} {url} timed out") from e
        except aiohttp.ClientError as e:
            raise ExternalServiceError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: HttpResponse, what: str) -> None:
        if response.status >= 400:
            raise ExternalServiceError(
                f"{what} returned status {response.status}",
                status=response.status,
                context={"body": response.text[:500]}
            )
