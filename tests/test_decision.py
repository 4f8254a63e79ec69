"""
Unit tests for the decision engine and the idle timer.
"""

from dataclasses import replace
from datetime import timedelta

import pytest

from pipescaler.engines import hysteresis
from pipescaler.engines.decision import decide
from pipescaler.exceptions import ProbeError
from pipescaler.models import ClusterState, HysteresisState, ScaleAction, StatusSnapshot


class TestErrorShortCircuit:
    """Any probe error forces a no-op and exactly one alert."""

    def test_queue_error_alerts_and_does_nothing(self, busy_snapshot, now):
        error = ProbeError("queue", "queue unreachable")
        snapshot = replace(busy_snapshot, queue_error=error)

        decision = decide(snapshot, HysteresisState(), now)

        assert decision.action == ScaleAction.NO_OP
        assert decision.alert is not None
        assert decision.alert.cause is error

    @pytest.mark.parametrize("present, expected", [
        (("queue", "compute", "cluster", "job"), "queue"),
        (("compute", "cluster", "job"), "compute"),
        (("cluster", "job"), "cluster"),
        (("job",), "job"),
        (("compute", "job"), "compute"),
    ])
    def test_highest_priority_error_wins(self, busy_snapshot, now, present, expected):
        errors = {name: ProbeError(name, f"{name} broke") for name in present}
        snapshot = replace(
            busy_snapshot,
            queue_error=errors.get("queue"),
            compute_error=errors.get("compute"),
            cluster_error=errors.get("cluster"),
            job_error=errors.get("job"),
        )

        decision = decide(snapshot, HysteresisState(), now)

        assert decision.action == ScaleAction.NO_OP
        assert decision.alert.cause is errors[expected]

    def test_error_leaves_idle_timer_alone(self, idle_snapshot, now):
        state = HysteresisState(idle_since=now - timedelta(minutes=30))
        snapshot = replace(idle_snapshot, job_error=ProbeError("job_engine", "livy down"))

        decision = decide(snapshot, state, now)

        assert decision.action == ScaleAction.NO_OP
        assert decision.hysteresis == state


class TestScaleUp:

    @pytest.mark.parametrize("compute_active", [True, False])
    @pytest.mark.parametrize("job_count", [0, 7])
    def test_create_cluster_when_queue_has_work_and_no_cluster(self, now, compute_active, job_count):
        snapshot = StatusSnapshot(queue_length=1, compute_active=compute_active,
                                  cluster_state=ClusterState.NOT_FOUND, job_count=job_count)
        state = HysteresisState(idle_since=now - timedelta(minutes=3))

        decision = decide(snapshot, state, now)

        assert decision.action == ScaleAction.CREATE_CLUSTER
        assert decision.hysteresis.idle_since is None
        assert decision.alert is None

    def test_start_compute_when_cluster_running(self, busy_snapshot, now):
        decision = decide(busy_snapshot, HysteresisState(idle_since=now), now)

        assert decision.action == ScaleAction.START_COMPUTE
        assert decision.hysteresis.idle_since is None

    @pytest.mark.parametrize("cluster_state", [
        ClusterState.PROVISIONING, ClusterState.DELETING, ClusterState.UNKNOWN,
    ])
    def test_waits_while_cluster_not_ready(self, now, cluster_state):
        snapshot = StatusSnapshot(queue_length=4, compute_active=False, cluster_state=cluster_state)
        state = HysteresisState(idle_since=now - timedelta(minutes=7))

        decision = decide(snapshot, state, now)

        assert decision.action == ScaleAction.NO_OP
        assert decision.hysteresis == state

    def test_nothing_to_do_when_compute_already_running(self, busy_snapshot, now):
        snapshot = replace(busy_snapshot, compute_active=True)

        decision = decide(snapshot, HysteresisState(), now)

        assert decision.action == ScaleAction.NO_OP


class TestScaleDown:

    def test_first_idle_observation_starts_timer(self, idle_snapshot, now):
        decision = decide(idle_snapshot, HysteresisState(), now)

        assert decision.action == ScaleAction.NO_OP
        assert decision.hysteresis.idle_since == now

    def test_within_window_keeps_waiting(self, idle_snapshot, now):
        state = HysteresisState(idle_since=now - timedelta(minutes=14, seconds=59))

        decision = decide(idle_snapshot, state, now)

        assert decision.action == ScaleAction.NO_OP
        assert decision.hysteresis == state

    def test_stop_compute_after_window(self, idle_snapshot, now):
        state = HysteresisState(idle_since=now - timedelta(minutes=16))

        decision = decide(idle_snapshot, state, now)

        assert decision.action == ScaleAction.STOP_COMPUTE
        assert decision.hysteresis == state

    def test_delete_cluster_after_window_and_rearm(self, idle_snapshot, now):
        state = HysteresisState(idle_since=now - timedelta(minutes=15))
        snapshot = replace(idle_snapshot, compute_active=False)

        decision = decide(snapshot, state, now)

        assert decision.action == ScaleAction.DELETE_CLUSTER
        assert decision.hysteresis.idle_since == now

    def test_deleting_cluster_is_retried_after_another_window(self, idle_snapshot, now):
        snapshot = replace(idle_snapshot, compute_active=False, cluster_state=ClusterState.DELETING)

        soon = decide(snapshot, HysteresisState(idle_since=now - timedelta(minutes=5)), now)
        later = decide(snapshot, HysteresisState(idle_since=now - timedelta(minutes=15)), now)

        assert soon.action == ScaleAction.NO_OP
        assert later.action == ScaleAction.DELETE_CLUSTER

    def test_running_jobs_leave_timer_unchanged(self, idle_snapshot, now):
        snapshot = replace(idle_snapshot, job_count=2)
        state = HysteresisState(idle_since=now - timedelta(minutes=7))

        decision = decide(snapshot, state, now)

        assert decision.action == ScaleAction.NO_OP
        assert decision.hysteresis == state

    def test_untouched_timer_can_elapse_once_jobs_finish(self, idle_snapshot, now):
        state = HysteresisState(idle_since=now - timedelta(minutes=10))

        busy = decide(replace(idle_snapshot, job_count=1), state, now)
        idle = decide(idle_snapshot, busy.hysteresis, now + timedelta(minutes=6))

        assert busy.action == ScaleAction.NO_OP
        assert idle.action == ScaleAction.STOP_COMPUTE

    def test_no_cluster_and_no_work_is_a_noop(self, now):
        snapshot = StatusSnapshot(queue_length=0, cluster_state=ClusterState.NOT_FOUND)
        state = HysteresisState(idle_since=now - timedelta(minutes=40))

        decision = decide(snapshot, state, now)

        assert decision.action == ScaleAction.NO_OP
        assert decision.hysteresis == state

    def test_custom_idle_window(self, idle_snapshot, now):
        state = HysteresisState(idle_since=now - timedelta(minutes=6))

        decision = decide(idle_snapshot, state, now, idle_window=timedelta(minutes=5))

        assert decision.action == ScaleAction.STOP_COMPUTE


class TestIdleTimerLaw:
    """Walk one idle period from first observation to cluster deletion."""

    def test_full_sequence(self, idle_snapshot, now):
        first = decide(idle_snapshot, HysteresisState(), now)
        assert first.action == ScaleAction.NO_OP
        assert first.hysteresis.idle_since == now

        t2 = now + timedelta(minutes=10)
        second = decide(idle_snapshot, first.hysteresis, t2)
        assert second.action == ScaleAction.NO_OP
        assert second.hysteresis.idle_since == now

        t3 = now + timedelta(minutes=15)
        third = decide(idle_snapshot, second.hysteresis, t3)
        assert third.action == ScaleAction.STOP_COMPUTE
        assert third.hysteresis.idle_since == now

        t4 = now + timedelta(minutes=16)
        fourth = decide(replace(idle_snapshot, compute_active=False), third.hysteresis, t4)
        assert fourth.action == ScaleAction.DELETE_CLUSTER
        assert fourth.hysteresis.idle_since == t4

    def test_same_inputs_same_action(self, idle_snapshot, busy_snapshot, now):
        for snapshot in (idle_snapshot, busy_snapshot):
            for state in (HysteresisState(), HysteresisState(idle_since=now - timedelta(minutes=20))):
                assert decide(snapshot, state, now).action == decide(snapshot, state, now).action


class TestScenarios:

    def test_scenario_a_start_compute(self, busy_snapshot, now):
        assert decide(busy_snapshot, HysteresisState(), now).action == ScaleAction.START_COMPUTE

    def test_scenario_b_first_idle(self, idle_snapshot, now):
        decision = decide(idle_snapshot, HysteresisState(), now)
        assert decision.action == ScaleAction.NO_OP
        assert decision.hysteresis.idle_since == now

    def test_scenario_c_stop_compute(self, idle_snapshot, now):
        state = HysteresisState(idle_since=now - timedelta(minutes=16))
        assert decide(idle_snapshot, state, now).action == ScaleAction.STOP_COMPUTE

    def test_scenario_d_queue_error(self, now):
        error = ProbeError("queue", "403 from storage")
        snapshot = StatusSnapshot(queue_error=error, compute_active=True,
                                  cluster_state=ClusterState.RUNNING)

        decision = decide(snapshot, HysteresisState(), now)

        assert decision.action == ScaleAction.NO_OP
        assert decision.alert.cause is error


class TestHysteresisHelpers:

    def test_observe_idle_starts_timer(self, now, window):
        elapsed, state = hysteresis.observe_idle(HysteresisState(), now, window)
        assert not elapsed
        assert state.idle_since == now

    def test_observe_idle_reports_elapsed_on_boundary(self, now, window):
        state = HysteresisState(idle_since=now - window)
        elapsed, new_state = hysteresis.observe_idle(state, now, window)
        assert elapsed
        assert new_state is state

    def test_clear_and_rearm(self, now):
        assert hysteresis.clear().idle_since is None
        assert hysteresis.rearm(now).idle_since == now
