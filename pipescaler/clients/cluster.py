"""
HDInsight cluster provisioning through Resource Manager.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

from .arm import ArmClient
from .base import ClusterService
from ..config import ClusterConfig
from ..exceptions import ConfigurationError, UnexpectedShapeError
from ..models import ClusterState

LOG = logging.getLogger(__name__)

# HDInsight reports both a cluster state and an ARM provisioning state.
_STATE_MAP = {
    "running": ClusterState.RUNNING,
    "succeeded": ClusterState.RUNNING,
    "accepted": ClusterState.PROVISIONING,
    "inprogress": ClusterState.PROVISIONING,
    "creating": ClusterState.PROVISIONING,
    "hdinsightconfiguration": ClusterState.PROVISIONING,
    "clusterstorageprovisioned": ClusterState.PROVISIONING,
    "azurevmconfiguration": ClusterState.PROVISIONING,
    "operational": ClusterState.PROVISIONING,
    "reconfiguring": ClusterState.PROVISIONING,
    "deleting": ClusterState.DELETING,
    "deleted": ClusterState.NOT_FOUND,
}


def parse_cluster_state(body: Any) -> ClusterState:
    """Map a cluster resource body onto ClusterState"""
    properties = body.get("properties") if isinstance(body, dict) else None
    if not isinstance(properties, dict):
        raise UnexpectedShapeError("cluster", "Cluster resource has no properties")

    raw = properties.get("clusterState") or properties.get("provisioningState")
    if not isinstance(raw, str):
        raise UnexpectedShapeError("cluster", "Cluster resource has no clusterState or provisioningState")

    return _STATE_MAP.get(raw.lower(), ClusterState.UNKNOWN)


class HDInsightClusterService(ClusterService):
    """Create, inspect and delete one HDInsight cluster"""

    provider = "Microsoft.HDInsight"

    def __init__(self, config: ClusterConfig, arm: ArmClient):
        self.config = config
        self.arm = arm

    @property
    def _path(self) -> str:
        return self.arm.resource_path(self.config.resource_group, self.provider, "clusters",
                                      self.config.name)

    async def get_provisioning_state(self) -> ClusterState:
        response = await self.arm.request("GET", self._path, self.config.api_version,
                                          allow_statuses=(404,))
        if response.status == 404:
            return ClusterState.NOT_FOUND
        state = parse_cluster_state(response.json())
        if state == ClusterState.UNKNOWN:
            LOG.warning(f"Unrecognised state for cluster '{self.config.name}': {response.text[:200]}")
        return state

    def load_template(self) -> Dict[str, Any]:
        """Read the cluster definition sent on create"""
        if not self.config.template_path:
            raise ConfigurationError("CLUSTER_TEMPLATE_PATH must be set to create a cluster")
        path = Path(self.config.template_path)
        try:
            template = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read cluster template: {e}",
                                     context={"path": str(path)}) from e
        if not isinstance(template, dict):
            raise ConfigurationError("Cluster template must be a JSON object", context={"path": str(path)})
        return template

    async def create(self) -> None:
        template = self.load_template()
        LOG.info(f"Creating cluster '{self.config.name}'")
        await self.arm.request("PUT", self._path, self.config.api_version, json_body=template)

    async def delete(self) -> None:
        LOG.info(f"Deleting cluster '{self.config.name}'")
        response = await self.arm.request("DELETE", self._path, self.config.api_version,
                                          allow_statuses=(404,))
        if response.status == 404:
            LOG.info(f"Cluster '{self.config.name}' already gone")
