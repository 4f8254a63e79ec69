"""
pipescaler: keeps a queue-driven HDInsight pipeline sized to its backlog.
"""

from .engines.decision import decide
from .models import (
    Alert, ClusterState, Decision, HysteresisState, ScaleAction, StatusSnapshot, TickResult,
)
from .operator import ControlLoop

__version__ = "0.1.0"

__all__ = [
    'decide', 'Alert', 'ClusterState', 'Decision', 'HysteresisState', 'ScaleAction',
    'StatusSnapshot', 'TickResult', 'ControlLoop',
]
