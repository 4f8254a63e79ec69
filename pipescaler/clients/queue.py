"""
Azure Storage queue client.
"""

import logging
from typing import Dict, Optional

import aiohttp

from .auth import STORAGE_SCOPE, AzureTokenProvider
from .base import QueueService
from .http import HttpClient
from ..config import QueueConfig
from ..exceptions import ConfigurationError, ExternalServiceError

LOG = logging.getLogger(__name__)

MESSAGE_COUNT_HEADER = "x-ms-approximate-messages-count"


class StorageQueueService(HttpClient, QueueService):
    """Reads the approximate message count of one queue"""

    def __init__(self, config: QueueConfig, tokens: AzureTokenProvider,
                 timeout: float = 30.0, session: Optional[aiohttp.ClientSession] = None):
        super().__init__(timeout=timeout, session=session)
        self.config = config
        self.tokens = tokens

    @property
    def queue_url(self) -> str:
        if not self.config.endpoint and not self.config.account_name:
            raise ConfigurationError("Queue account name or endpoint must be set")
        return f"{self.config.base_url}/{self.config.name}"

    async def _headers(self) -> Dict[str, str]:
        headers = await self.tokens.authorization_header(STORAGE_SCOPE)
        headers["x-ms-version"] = self.config.api_version
        return headers

    async def ensure_exists(self) -> None:
        # 201 created, 204 already there with the same metadata
        response = await self._send("PUT", self.queue_url, headers=await self._headers())
        if response.status == 201:
            LOG.info(f"Created queue '{self.config.name}'")
        self._raise_for_status(response, f"Create queue '{self.config.name}'")

    async def get_approximate_length(self) -> int:
        response = await self._send("GET", self.queue_url, headers=await self._headers(),
                                    params={"comp": "metadata"})
        self._raise_for_status(response, f"Queue metadata '{self.config.name}'")

        headers = {k.lower(): v for k, v in response.headers.items()}
        raw = headers.get(MESSAGE_COUNT_HEADER)
        if raw is None:
            raise ExternalServiceError(f"Queue metadata is missing {MESSAGE_COUNT_HEADER}",
                                       status=response.status)
        try:
            return max(int(raw), 0)
        except ValueError as e:
            raise ExternalServiceError(f"Invalid message count '{raw}'", status=response.status) from e
