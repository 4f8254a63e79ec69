"""
Status aggregation: run the four probes concurrently and build one snapshot.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple

from .clients.base import ClusterService, ComputeService, JobEngineService, QueueService
from .exceptions import ProbeError
from .health import set_component_health
from .metrics import ACTIVE_JOBS, PROBE_FAILURES, QUEUE_LENGTH
from .models import ClusterState, StatusSnapshot

LOG = logging.getLogger(__name__)

ProbeResult = Tuple[Any, Optional[ProbeError]]


class StatusAggregator:
    """
    Fans the probes out and joins them into a StatusSnapshot.

    Each probe owns its own pair of snapshot fields. A failing probe reports its
    zero value plus a ProbeError and never affects the other three.
    """

    def __init__(self, queue: QueueService, compute: ComputeService,
                 cluster: ClusterService, job_engine: JobEngineService):
        self.queue = queue
        self.compute = compute
        self.cluster = cluster
        self.job_engine = job_engine

    async def collect(self) -> StatusSnapshot:
        (queue_length, queue_error), (compute_active, compute_error), \
            (cluster_state, cluster_error), (job_count, job_error) = await asyncio.gather(
                self._probe("queue", self._queue_length, 0),
                self._probe("compute", self._compute_active, False),
                self._probe("cluster", self.cluster.get_provisioning_state, ClusterState.UNKNOWN),
                self._probe("job_engine", self.job_engine.list_active_job_count, 0),
            )

        snapshot = StatusSnapshot(
            queue_length=queue_length,
            queue_error=queue_error,
            compute_active=compute_active,
            compute_error=compute_error,
            cluster_state=cluster_state,
            cluster_error=cluster_error,
            job_count=job_count,
            job_error=job_error,
        )
        if queue_error is None:
            QUEUE_LENGTH.set(queue_length)
        if job_error is None:
            ACTIVE_JOBS.set(job_count)
        return snapshot

    async def _queue_length(self) -> int:
        await self.queue.ensure_exists()
        return await self.queue.get_approximate_length()

    async def _compute_active(self) -> bool:
        state = await self.compute.get_state()
        return state.running

    async def _probe(self, signal: str, fetch: Callable[[], Awaitable[Any]], zero: Any) -> ProbeResult:
        try:
            value = await fetch()
        except ProbeError as e:
            return self._failed(signal, zero, e)
        except Exception as e:
            return self._failed(signal, zero, ProbeError(signal, f"{signal} probe failed: {e}", cause=e))
        set_component_health(signal, True)
        LOG.debug(f"Probe {signal}: {value}")
        return value, None

    @staticmethod
    def _failed(signal: str, zero: Any, error: ProbeError) -> ProbeResult:
        LOG.warning(f"Probe {signal} failed: {error}")
        PROBE_FAILURES.labels(signal=signal).inc()
        set_component_health(signal, False)
        return zero, error
