"""
App Service / Function App used as the relay/compute service.
"""

import logging

from .arm import ArmClient
from .base import ComputeService
from ..config import ComputeConfig
from ..exceptions import UnexpectedShapeError
from ..models import ComputeState

LOG = logging.getLogger(__name__)


class AppServiceComputeService(ComputeService):
    """Start/stop a site through Resource Manager"""

    def __init__(self, config: ComputeConfig, arm: ArmClient):
        self.config = config
        self.arm = arm

    @property
    def _path(self) -> str:
        return self.arm.resource_path(self.config.resource_group, "Microsoft.Web", "sites",
                                      self.config.app_name)

    async def get_state(self) -> ComputeState:
        response = await self.arm.request("GET", self._path, self.config.api_version)
        body = response.json()
        state = None
        if isinstance(body, dict) and isinstance(body.get("properties"), dict):
            state = body["properties"].get("state")
        if not isinstance(state, str):
            raise UnexpectedShapeError(
                "compute",
                "Site resource has no properties.state",
                context={"app": self.config.app_name}
            )
        return ComputeState(running=state == "Running", raw_state=state)

    async def start(self) -> None:
        LOG.info(f"Starting compute '{self.config.app_name}'")
        await self.arm.request("POST", f"{self._path}/start", self.config.api_version)

    async def stop(self) -> None:
        LOG.info(f"Stopping compute '{self.config.app_name}'")
        await self.arm.request("POST", f"{self._path}/stop", self.config.api_version)
