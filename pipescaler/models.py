"""
Data model shared by the probes, the decision engine and the executor.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClusterState(Enum):
    """Provisioning state of the big-data cluster"""
    NOT_FOUND = "NotFound"
    PROVISIONING = "Provisioning"
    RUNNING = "Running"
    DELETING = "Deleting"
    UNKNOWN = "Unknown"


class ScaleAction(Enum):
    """The single action taken per tick"""
    CREATE_CLUSTER = "create_cluster"
    START_COMPUTE = "start_compute"
    STOP_COMPUTE = "stop_compute"
    DELETE_CLUSTER = "delete_cluster"
    NO_OP = "no_op"


# Order matters: the first failing signal wins the alert.
SIGNAL_PRIORITY = ("queue", "compute", "cluster", "job_engine")


@dataclass(frozen=True)
class ComputeState:
    """State of the relay/compute service"""
    running: bool
    raw_state: str = ""


@dataclass(frozen=True)
class StatusSnapshot:
    """
    Everything the probes observed during one tick.

    When an ``*_error`` field is set, its paired value holds the zero value and
    must not be trusted.
    """
    queue_length: int = 0
    queue_error: Optional[BaseException] = None
    compute_active: bool = False
    compute_error: Optional[BaseException] = None
    cluster_state: ClusterState = ClusterState.UNKNOWN
    cluster_error: Optional[BaseException] = None
    job_count: int = 0
    job_error: Optional[BaseException] = None

    def errors(self) -> Dict[str, Optional[BaseException]]:
        return {
            "queue": self.queue_error,
            "compute": self.compute_error,
            "cluster": self.cluster_error,
            "job_engine": self.job_error,
        }

    def first_error(self) -> Optional[Tuple[str, BaseException]]:
        """Return the highest-priority (signal, error) pair, if any"""
        errors = self.errors()
        for signal in SIGNAL_PRIORITY:
            if errors[signal] is not None:
                return signal, errors[signal]
        return None

    @property
    def is_idle(self) -> bool:
        return self.queue_length == 0 and self.job_count == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "queue_length": self.queue_length,
            "compute_active": self.compute_active,
            "cluster_state": self.cluster_state.value,
            "job_count": self.job_count,
            "errors": {k: str(v) for k, v in self.errors().items() if v is not None},
        }


@dataclass(frozen=True)
class HysteresisState:
    """Start of the current continuous idle period, if any"""
    idle_since: Optional[datetime] = None

    def idle_for(self, now: datetime) -> Optional[float]:
        """Seconds spent idle so far, or None when not idle"""
        if self.idle_since is None:
            return None
        return (now - self.idle_since).total_seconds()


@dataclass(frozen=True)
class Alert:
    """A failure record handed to the alert sink"""
    reason: str
    cause: Optional[BaseException] = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "alert": {
                "reason": self.reason,
                "error": str(self.cause) if self.cause is not None else None,
                "errorType": type(self.cause).__name__ if self.cause is not None else None,
                "timestamp": self.timestamp.isoformat(),
            }
        }


@dataclass(frozen=True)
class Decision:
    """Output of the decision engine"""
    action: ScaleAction
    hysteresis: HysteresisState
    alert: Optional[Alert] = None
    reason: str = ""


@dataclass
class TickResult:
    """Outcome of one control-loop invocation"""
    snapshot: StatusSnapshot
    decision: Decision
    started_at: datetime
    finished_at: Optional[datetime] = None
    is_past_due: bool = False
    action_alert: Optional[Alert] = None

    @property
    def action(self) -> ScaleAction:
        return self.decision.action

    @property
    def alerts(self) -> List[Alert]:
        return [a for a in (self.decision.alert, self.action_alert) if a is not None]

    def to_dict(self) -> Dict[str, Any]:
        idle_since = self.decision.hysteresis.idle_since
        return {
            "action": self.action.value,
            "reason": self.decision.reason,
            "is_past_due": self.is_past_due,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "idle_since": idle_since.isoformat() if idle_since else None,
            "snapshot": self.snapshot.to_dict(),
            "alerts": [a.to_payload()["alert"] for a in self.alerts],
        }
