"""
The control loop: one tick gathers status, decides, acts and reports.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Optional

from .aggregator import StatusAggregator
from .clients.base import AlertSink
from .engines.decision import decide
from .engines.hysteresis import DEFAULT_IDLE_WINDOW
from .executor import ActionExecutor
from .health import set_component_health
from .metrics import ALERTS_RAISED, DECISIONS_MADE, IDLE_SECONDS, TICK_DURATION, TICKS, update_health_metrics
from .models import Alert, Decision, HysteresisState, ScaleAction, StatusSnapshot, TickResult, utcnow

LOG = logging.getLogger(__name__)

# ============================================================================
# Control Loop
# ============================================================================

class ControlLoop:
    """
    Owns the idle timer and runs ticks.

    Callers must not run two ticks at once; the hysteresis state has a single
    writer and is not locked here.
    """

    def __init__(self, aggregator: StatusAggregator, executor: ActionExecutor, alert_sink: AlertSink,
                 idle_window: timedelta = DEFAULT_IDLE_WINDOW,
                 hysteresis: Optional[HysteresisState] = None):
        self.aggregator = aggregator
        self.executor = executor
        self.alert_sink = alert_sink
        self.idle_window = idle_window
        self.hysteresis = hysteresis or HysteresisState()
        self.last_result: Optional[TickResult] = None

    async def run_tick(self, is_past_due: bool = False, now: Optional[datetime] = None) -> TickResult:
        """Run one tick. Never raises; failures end up as alerts on the result."""
        started = time.monotonic()
        started_at = now or utcnow()
        TICKS.labels(past_due=str(is_past_due).lower()).inc()
        if is_past_due:
            LOG.warning("Check timer is running late")

        try:
            result = await self._tick(started_at, is_past_due)
        except Exception as e:
            LOG.error(f"Tick failed unexpectedly: {e}", exc_info=True)
            set_component_health("decision_engine", False)
            alert = Alert(reason="control loop tick failed", cause=e)
            result = TickResult(
                snapshot=StatusSnapshot(),
                decision=Decision(action=ScaleAction.NO_OP, hysteresis=self.hysteresis,
                                  alert=alert, reason=f"tick failed: {e}"),
                started_at=started_at,
                is_past_due=is_past_due,
            )
            await self._send_alert(alert, "tick")

        result.finished_at = utcnow()
        TICK_DURATION.observe(time.monotonic() - started)
        update_health_metrics()
        self.last_result = result
        return result

    async def _tick(self, now: datetime, is_past_due: bool) -> TickResult:
        snapshot = await self.aggregator.collect()

        decision = decide(snapshot, self.hysteresis, now, self.idle_window)
        set_component_health("decision_engine", True)
        DECISIONS_MADE.labels(action=decision.action.value).inc()

        # Stored before acting: a failed deletion still re-arms the idle window.
        self.hysteresis = decision.hysteresis
        idle_for = self.hysteresis.idle_for(now)
        IDLE_SECONDS.set(idle_for if idle_for is not None else 0)

        LOG.info(
            f"Status: queue={snapshot.queue_length} compute_active={snapshot.compute_active} "
            f"cluster={snapshot.cluster_state.value} jobs={snapshot.job_count}"
        )
        LOG.info(f"Decision: {decision.action.value} ({decision.reason})")

        result = TickResult(snapshot=snapshot, decision=decision, started_at=now, is_past_due=is_past_due)

        if decision.alert is not None:
            await self._send_alert(decision.alert, "probe")
            return result

        result.action_alert = await self.executor.execute(decision.action)
        if result.action_alert is not None:
            await self._send_alert(result.action_alert, "action")
        return result

    async def _send_alert(self, alert: Alert, kind: str) -> None:
        ALERTS_RAISED.labels(kind=kind).inc()
        try:
            await self.alert_sink.post(alert)
        except Exception as e:
            LOG.warning(f"Alert sink raised, alert dropped: {e}")
