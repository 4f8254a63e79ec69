"""
Component health tracking for pipescaler.
"""

from typing import Any, Dict

# ============================================================================
# Health Status (Global State)
# ============================================================================

health_status: Dict[str, bool] = {
    "queue": True,
    "compute": True,
    "cluster": True,
    "job_engine": True,
    "alert_sink": True,
    "decision_engine": True,
}

# ============================================================================
# Health Status Management
# ============================================================================

def set_component_health(component: str, status: bool):
    """Set health status for a specific component"""
    health_status[component] = status


def get_overall_health() -> bool:
    """Get overall health status"""
    return all(health_status.values())


def get_component_health(component: str) -> bool:
    """Get health status for a specific component"""
    return health_status.get(component, False)


def health_report() -> Dict[str, Any]:
    return {
        "status": "healthy" if get_overall_health() else "degraded",
        "components": dict(health_status),
    }
