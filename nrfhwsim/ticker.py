"""A fake device that runs a test application's timed task on each tick."""

from __future__ import annotations

from typing import Callable

from nrfhwsim.irq_ctrl import PHONY_HARD_IRQ, IrqController
from nrfhwsim.timeline import TIME_NEVER, TimeMachine


class TestTicker:
    """Calls ``on_tick(hw_time)`` periodically or at requested times.

    It can also wake the CPU as soon as possible, in the same microsecond.
    """

    __test__ = False

    def __init__(
        self,
        time_machine: TimeMachine,
        irq_ctrl: IrqController,
        on_tick: Callable[[int], None],
    ) -> None:
        self._tm = time_machine
        self._irq_ctrl = irq_ctrl
        self._on_tick = on_tick
        self._awake_asap = False
        self._next_tick = TIME_NEVER
        self.tick_period = TIME_NEVER
        self.timer = TIME_NEVER
        time_machine.register_timer("test_ticker", lambda: self.timer)

    def _find_next_time(self) -> None:
        self.timer = self._tm.get_hw_time() if self._awake_asap else self._next_tick
        self._tm.find_next_timer_to_trigger()

    def set_period(self, tick_period: int) -> None:
        """Tick every ``tick_period`` microseconds, the first one a period from now."""
        self.tick_period = tick_period
        self._next_tick = tick_period + self._tm.get_hw_time()
        self._find_next_time()

    def set_next_tick_absolute(self, absolute_time: int) -> None:
        """Tick next at the given absolute time."""
        self._next_tick = self._tm.abs_time_to_hw_time(absolute_time)
        self._find_next_time()

    def set_next_tick_delta(self, delta_time: int) -> None:
        """Tick next ``delta_time`` microseconds from now."""
        self._next_tick = delta_time + self._tm.get_hw_time()
        self._find_next_time()

    def triggered(self, hw_time: int) -> None:
        """Handle the timer firing at ``hw_time``."""
        if self._awake_asap:
            self._awake_asap = False
            self._irq_ctrl.raise_im(PHONY_HARD_IRQ)
        else:
            if self.tick_period != TIME_NEVER:
                self._next_tick = self.tick_period + hw_time
            else:
                self._next_tick = TIME_NEVER
            self._on_tick(hw_time)
        self._find_next_time()

    def awake_cpu_asap(self) -> None:
        """Wake the CPU in this same microsecond, in a following delta cycle."""
        self._awake_asap = True
        self._find_next_time()