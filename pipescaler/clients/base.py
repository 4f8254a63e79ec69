"""
Interfaces for the services the control loop talks to.
"""

from abc import ABC, abstractmethod

from ..models import Alert, ClusterState, ComputeState


class QueueService(ABC):
    """Input work queue"""

    @abstractmethod
    async def ensure_exists(self) -> None:
        pass

    @abstractmethod
    async def get_approximate_length(self) -> int:
        pass


class ComputeService(ABC):
    """Relay/compute service that can be started and stopped cheaply"""

    @abstractmethod
    async def get_state(self) -> ComputeState:
        pass

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass


class ClusterService(ABC):
    """Provisioned big-data cluster"""

    @abstractmethod
    async def get_provisioning_state(self) -> ClusterState:
        pass

    @abstractmethod
    async def create(self) -> None:
        pass

    @abstractmethod
    async def delete(self) -> None:
        pass


class JobEngineService(ABC):
    """Job execution engine running on the cluster"""

    @abstractmethod
    async def list_active_job_count(self) -> int:
        pass


class AlertSink(ABC):
    """
    Best-effort alert delivery.

    Implementations must never raise from ``post``; delivery problems are
    logged and dropped.
    """

    @abstractmethod
    async def post(self, alert: Alert) -> None:
        pass

    async def close(self) -> None:
        pass
