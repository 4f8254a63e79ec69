"""
Tick scheduling: a fixed-cadence timer plus a lock shared with manual triggers.
"""

import asyncio
import logging
from typing import Optional

from .models import TickResult
from .operator import ControlLoop

LOG = logging.getLogger(__name__)


class TickRunner:
    """Serialises ticks coming from the timer and from HTTP"""

    def __init__(self, control_loop: ControlLoop):
        self.control_loop = control_loop
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def run_tick(self, is_past_due: bool = False) -> TickResult:
        async with self._lock:
            return await self.control_loop.run_tick(is_past_due=is_past_due)


class TimerTrigger:
    """
    Runs a tick every ``interval`` seconds.

    A tick that starts more than ``tolerance`` seconds after its slot is flagged
    past due. Slots missed while a tick was running are skipped, so at most one
    late tick follows a slow one.
    """

    def __init__(self, runner: TickRunner, interval: float, tolerance: float = 5.0):
        self.runner = runner
        self.interval = interval
        self.tolerance = tolerance
        self.ticks = 0

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        stop = stop or asyncio.Event()
        loop = asyncio.get_running_loop()
        next_due = loop.time()
        LOG.info(f"Timer started, interval {self.interval}s")

        while not stop.is_set():
            delay = next_due - loop.time()
            if delay > 0:
                try:
                    await asyncio.wait_for(stop.wait(), timeout=delay)
                    break
                except asyncio.TimeoutError:
                    pass

            lateness = loop.time() - next_due
            await self.runner.run_tick(is_past_due=lateness > self.tolerance)
            self.ticks += 1

            next_due += self.interval
            behind = loop.time() - next_due
            if behind > 0:
                skipped = int(behind // self.interval)
                if skipped:
                    LOG.warning(f"Tick overran, skipping {skipped} scheduled runs")
                next_due += skipped * self.interval

        LOG.info("Timer stopped")
