from .decision import decide
from .hysteresis import DEFAULT_IDLE_WINDOW

__all__ = ['decide', 'DEFAULT_IDLE_WINDOW']
