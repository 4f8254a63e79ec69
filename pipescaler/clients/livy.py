"""
Livy batch endpoint on the cluster, used as the job engine probe.
"""

import logging
from typing import Optional

import aiohttp

from .base import JobEngineService
from .http import HttpClient
from ..config import ClusterConfig
from ..exceptions import ExternalServiceError, UnexpectedShapeError

LOG = logging.getLogger(__name__)

ACTIVE_STATES = frozenset({
    "not_started", "starting", "recovering", "idle", "running", "busy", "shutting_down",
})


class LivyJobEngineService(HttpClient, JobEngineService):
    """Counts active Livy batches"""

    def __init__(self, config: ClusterConfig, timeout: float = 30.0,
                 session: Optional[aiohttp.ClientSession] = None):
        super().__init__(timeout=timeout, session=session)
        self.config = config

    async def list_active_job_count(self) -> int:
        response = await self._send(
            "GET", f"{self.config.livy_url}/batches",
            headers={"Accept": "application/json"},
            auth=aiohttp.BasicAuth(self.config.login_user, self.config.login_password),
        )
        if response.status != 200:
            raise ExternalServiceError(f"Livy returned status {response.status}",
                                       status=response.status)

        body = response.json()
        sessions = body.get("sessions") if isinstance(body, dict) else None
        if not isinstance(sessions, list):
            raise UnexpectedShapeError("job_engine", "Livy response has no sessions list")

        active = [s for s in sessions
                  if isinstance(s, dict) and str(s.get("state", "")).lower() in ACTIVE_STATES]
        LOG.debug(f"Livy reports {len(sessions)} batches, {len(active)} active")
        return len(active)
