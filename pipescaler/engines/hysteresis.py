"""
Scale-down debounce.

The idle timer is a single timestamp. It starts on the first idle observation,
must age past the idle window before teardown is allowed, and is re-armed after
a cluster deletion so retries are spaced by the same window.
"""

from datetime import datetime, timedelta
from typing import Tuple

from ..models import HysteresisState

DEFAULT_IDLE_WINDOW = timedelta(minutes=15)


def clear() -> HysteresisState:
    """Idle timer after a scale-up action"""
    return HysteresisState(idle_since=None)


def rearm(now: datetime) -> HysteresisState:
    return HysteresisState(idle_since=now)


def observe_idle(state: HysteresisState, now: datetime,
                 window: timedelta = DEFAULT_IDLE_WINDOW) -> Tuple[bool, HysteresisState]:
    """
    Record an idle observation.

    Returns ``(elapsed, new_state)``: ``elapsed`` is True once the system has
    been idle for at least ``window`` since ``state.idle_since``. The first
    observation starts the timer and never reports elapsed.
    """
    if state.idle_since is None:
        return False, rearm(now)
    return now - state.idle_since >= window, state
