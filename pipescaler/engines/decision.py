"""
Decision engine for pipeline scaling decisions.
"""

import logging
from datetime import datetime, timedelta

from . import hysteresis
from ..models import (
    Alert, ClusterState, Decision, HysteresisState, ScaleAction, StatusSnapshot,
)

LOG = logging.getLogger(__name__)

# ============================================================================
# Decision Engine
# ============================================================================

def decide(snapshot: StatusSnapshot, state: HysteresisState, now: datetime,
           idle_window: timedelta = hysteresis.DEFAULT_IDLE_WINDOW) -> Decision:
    """
    Pick the single action for this tick.

    Rules, in order:
      1. any probe error: no-op plus one alert for the highest-priority error
      2. queued work and no cluster: create the cluster
      3. queued work, cluster running, compute stopped: start compute
      4. nothing queued or running: wait out the idle window, then stop
         compute, then delete the cluster
    """
    failed = snapshot.first_error()
    if failed is not None:
        signal, error = failed
        return Decision(
            action=ScaleAction.NO_OP,
            hysteresis=state,
            alert=Alert(reason=f"{signal} status check failed", cause=error),
            reason=f"{signal} probe failed: {error}",
        )

    # Queue not empty
    if snapshot.queue_length > 0:
        if snapshot.cluster_state == ClusterState.NOT_FOUND:
            return Decision(
                action=ScaleAction.CREATE_CLUSTER,
                hysteresis=hysteresis.clear(),
                reason=f"{snapshot.queue_length} queued messages and no cluster",
            )
        if snapshot.cluster_state == ClusterState.RUNNING and not snapshot.compute_active:
            return Decision(
                action=ScaleAction.START_COMPUTE,
                hysteresis=hysteresis.clear(),
                reason=f"{snapshot.queue_length} queued messages and compute is stopped",
            )

    # Queue empty
    if snapshot.is_idle and snapshot.cluster_state != ClusterState.NOT_FOUND:
        elapsed, new_state = hysteresis.observe_idle(state, now, idle_window)
        if state.idle_since is None:
            return Decision(
                action=ScaleAction.NO_OP,
                hysteresis=new_state,
                reason="pipeline idle, starting idle timer",
            )
        if not elapsed:
            idle_for = timedelta(seconds=int(state.idle_for(now)))
            return Decision(
                action=ScaleAction.NO_OP,
                hysteresis=new_state,
                reason=f"pipeline idle for {idle_for}, waiting for {idle_window}",
            )
        if snapshot.compute_active:
            # Keep the timer so the next tick can go straight to deletion.
            return Decision(
                action=ScaleAction.STOP_COMPUTE,
                hysteresis=new_state,
                reason=f"pipeline idle for over {idle_window}, stopping compute",
            )
        return Decision(
            action=ScaleAction.DELETE_CLUSTER,
            hysteresis=hysteresis.rearm(now),
            reason=f"pipeline idle for over {idle_window}, deleting cluster",
        )

    # Nothing to do this tick; the idle timer is left as it was.
    reason = _waiting_reason(snapshot)
    LOG.debug(f"No action: {reason}")
    return Decision(action=ScaleAction.NO_OP, hysteresis=state, reason=reason)


def _waiting_reason(snapshot: StatusSnapshot) -> str:
    if snapshot.is_idle:
        return "pipeline idle and no cluster provisioned"
    if snapshot.queue_length > 0:
        return (f"{snapshot.queue_length} queued messages, cluster is "
                f"{snapshot.cluster_state.value}, compute active={snapshot.compute_active}")
    return f"{snapshot.job_count} jobs still running"
