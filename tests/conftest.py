"""
Pytest configuration and shared fixtures for pipescaler tests.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from pipescaler.clients.base import (
    AlertSink, ClusterService, ComputeService, JobEngineService, QueueService,
)
from pipescaler.health import health_status
from pipescaler.models import Alert, ClusterState, ComputeState, StatusSnapshot


class FakeQueue(QueueService):
    def __init__(self, length: int = 0, error: Optional[Exception] = None):
        self.length = length
        self.error = error
        self.ensured = 0

    async def ensure_exists(self) -> None:
        self.ensured += 1

    async def get_approximate_length(self) -> int:
        if self.error:
            raise self.error
        return self.length


class FakeCompute(ComputeService):
    def __init__(self, running: bool = False, error: Optional[Exception] = None,
                 action_error: Optional[Exception] = None):
        self.running = running
        self.error = error
        self.action_error = action_error
        self.calls: List[str] = []

    async def get_state(self) -> ComputeState:
        if self.error:
            raise self.error
        return ComputeState(running=self.running, raw_state="Running" if self.running else "Stopped")

    async def start(self) -> None:
        self.calls.append("start")
        if self.action_error:
            raise self.action_error
        self.running = True

    async def stop(self) -> None:
        self.calls.append("stop")
        if self.action_error:
            raise self.action_error
        self.running = False


class FakeCluster(ClusterService):
    def __init__(self, state: ClusterState = ClusterState.RUNNING, error: Optional[Exception] = None,
                 action_error: Optional[Exception] = None):
        self.state = state
        self.error = error
        self.action_error = action_error
        self.calls: List[str] = []

    async def get_provisioning_state(self) -> ClusterState:
        if self.error:
            raise self.error
        return self.state

    async def create(self) -> None:
        self.calls.append("create")
        if self.action_error:
            raise self.action_error
        self.state = ClusterState.PROVISIONING

    async def delete(self) -> None:
        self.calls.append("delete")
        if self.action_error:
            raise self.action_error
        self.state = ClusterState.DELETING


class FakeJobEngine(JobEngineService):
    def __init__(self, count: int = 0, error: Optional[Exception] = None):
        self.count = count
        self.error = error

    async def list_active_job_count(self) -> int:
        if self.error:
            raise self.error
        return self.count


class RecordingAlertSink(AlertSink):
    def __init__(self):
        self.alerts: List[Alert] = []

    async def post(self, alert: Alert) -> None:
        self.alerts.append(alert)


@pytest.fixture
def now():
    """Fixed tick time"""
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def idle_snapshot():
    """Nothing queued, nothing running, cluster up, compute up."""
    return StatusSnapshot(
        queue_length=0,
        compute_active=True,
        cluster_state=ClusterState.RUNNING,
        job_count=0,
    )


@pytest.fixture
def busy_snapshot():
    """Work queued on a running cluster with compute stopped."""
    return StatusSnapshot(
        queue_length=5,
        compute_active=False,
        cluster_state=ClusterState.RUNNING,
        job_count=3,
    )


@pytest.fixture
def window():
    return timedelta(minutes=15)


@pytest.fixture
def fakes():
    """A matching set of fake services, all healthy and idle."""
    return {
        "queue": FakeQueue(),
        "compute": FakeCompute(running=True),
        "cluster": FakeCluster(ClusterState.RUNNING),
        "job_engine": FakeJobEngine(),
        "alerts": RecordingAlertSink(),
    }


@pytest.fixture(autouse=True)
def reset_health():
    """Health flags are module state; start every test healthy."""
    for component in health_status:
        health_status[component] = True
    yield
