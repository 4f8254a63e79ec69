"""
Executes the chosen scale action against the compute or cluster service.
"""

import logging
from typing import Optional

from .clients.base import ClusterService, ComputeService
from .exceptions import ActionError
from .metrics import SCALING_OPERATIONS
from .models import Alert, ScaleAction

LOG = logging.getLogger(__name__)


class ActionExecutor:
    """
    One service call per action, no retries.

    Services are expected to treat repeated start/stop/create/delete calls as
    no-ops, so the next tick may safely re-issue a failed action.
    """

    def __init__(self, compute: ComputeService, cluster: ClusterService, dry_run: bool = False):
        self.compute = compute
        self.cluster = cluster
        self.dry_run = dry_run

    async def execute(self, action: ScaleAction) -> Optional[Alert]:
        """Run ``action``; returns an alert if it failed"""
        if action == ScaleAction.NO_OP:
            return None

        if self.dry_run:
            LOG.info(f"Dry run: would execute {action.value}")
            SCALING_OPERATIONS.labels(action=action.value, outcome="dry_run").inc()
            return None

        try:
            await self._call_for(action)()
        except Exception as e:
            LOG.error(f"Action {action.value} failed: {e}")
            SCALING_OPERATIONS.labels(action=action.value, outcome="failed").inc()
            error = ActionError(action.value, f"{action.value} failed: {e}", cause=e)
            return Alert(reason=f"{action.value} failed", cause=error)

        LOG.info(f"Action {action.value} executed")
        SCALING_OPERATIONS.labels(action=action.value, outcome="succeeded").inc()
        return None

    def _call_for(self, action: ScaleAction):
        return {
            ScaleAction.CREATE_CLUSTER: self.cluster.create,
            ScaleAction.START_COMPUTE: self.compute.start,
            ScaleAction.STOP_COMPUTE: self.compute.stop,
            ScaleAction.DELETE_CLUSTER: self.cluster.delete,
        }[action]
