"""
Prometheus metrics definitions for pipescaler.
"""

from prometheus_client import Counter, Gauge, Histogram

from .health import health_status

# ============================================================================
# Prometheus Metrics
# ============================================================================

TICKS = Counter(
    'pipescaler_ticks_total',
    'Control loop ticks',
    ['past_due']
)

DECISIONS_MADE = Counter(
    'pipescaler_decisions_total',
    'Decisions made by the decision engine',
    ['action']
)

SCALING_OPERATIONS = Counter(
    'pipescaler_scaling_operations_total',
    'Scale commands sent to external services',
    ['action', 'outcome']
)

ALERTS_RAISED = Counter(
    'pipescaler_alerts_total',
    'Alerts handed to the alert sink',
    ['kind']
)

PROBE_FAILURES = Counter(
    'pipescaler_probe_failures_total',
    'Status probe failures',
    ['signal']
)

QUEUE_LENGTH = Gauge(
    'pipescaler_queue_length',
    'Approximate number of messages in the input queue'
)

ACTIVE_JOBS = Gauge(
    'pipescaler_active_jobs',
    'Active jobs reported by the job engine'
)

IDLE_SECONDS = Gauge(
    'pipescaler_idle_seconds',
    'Seconds the pipeline has been continuously idle (0 when busy)'
)

TICK_DURATION = Histogram(
    'pipescaler_tick_duration_seconds',
    'Wall time of one control loop tick',
    buckets=(0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60)
)

OPERATOR_HEALTH = Gauge(
    'pipescaler_component_health',
    'Component health (1 healthy, 0 failing)',
    ['component']
)


def update_health_metrics():
    """Update health metrics based on current health status"""
    for component, status in health_status.items():
        OPERATOR_HEALTH.labels(component=component).set(1 if status else 0)
