"""
Azure Resource Manager client shared by the compute and cluster services.
"""

import logging
from typing import Any, Iterable, Optional

import aiohttp

from .auth import ARM_SCOPE, AzureTokenProvider
from .http import HttpClient, HttpResponse
from ..exceptions import ConfigurationError

LOG = logging.getLogger(__name__)


class ArmClient(HttpClient):
    """Authenticated JSON requests against resources in one subscription"""

    def __init__(self, base_url: str, subscription_id: str, tokens: AzureTokenProvider,
                 timeout: float = 30.0, session: Optional[aiohttp.ClientSession] = None):
        super().__init__(timeout=timeout, session=session)
        self.base_url = base_url.rstrip('/')
        self.subscription_id = subscription_id
        self.tokens = tokens

    def resource_path(self, resource_group: str, provider: str, resource_type: str, name: str) -> str:
        if not (self.subscription_id and resource_group and name):
            raise ConfigurationError(
                "Subscription, resource group and resource name are required",
                context={"provider": provider, "type": resource_type}
            )
        return (f"/subscriptions/{self.subscription_id}/resourceGroups/{resource_group}"
                f"/providers/{provider}/{resource_type}/{name}")

    async def request(self, method: str, path: str, api_version: str, *,
                      json_body: Any = None,
                      allow_statuses: Iterable[int] = ()) -> HttpResponse:
        """
        Call ``{base_url}{path}?api-version=...``.

        Statuses >= 400 raise ExternalServiceError unless listed in
        ``allow_statuses``.
        """
        headers = await self.tokens.authorization_header(ARM_SCOPE)
        response = await self._send(
            method, f"{self.base_url}{path}",
            headers=headers,
            params={"api-version": api_version},
            json_body=json_body,
        )
        if response.status not in set(allow_statuses):
            self._raise_for_status(response, f"ARM {method} {path}")
        return response
