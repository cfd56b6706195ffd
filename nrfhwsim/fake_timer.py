"""A timer that wakes the CPU without an interrupt vector (for busy waits)."""

from __future__ import annotations

from nrfhwsim.irq_ctrl import PHONY_HARD_IRQ, IrqController
from nrfhwsim.timeline import TIME_NEVER, TimeMachine


class FakeTimer:
    """Wakes the CPU at a given time even if interrupts are locked."""

    def __init__(self, time_machine: TimeMachine, irq_ctrl: IrqController) -> None:
        self._tm = time_machine
        self._irq_ctrl = irq_ctrl
        self.reset()
        time_machine.register_timer("fake_timer", lambda: self.timer)

    def reset(self) -> None:
        """Cancel any pending wake-up."""
        self.timer = TIME_NEVER

    def _schedule(self, time: int) -> None:
        self.timer = time
        self._tm.find_next_timer_to_trigger()

    def wake_in_time(self, time: int) -> None:
        """Wake the CPU at ``time`` at the latest; an earlier request prevails."""
        if self.timer > time:
            self._schedule(time)

    def triggered(self) -> None:
        """Handle the timer firing: wake the CPU through a hard phony IRQ."""
        self._schedule(TIME_NEVER)
        self._irq_ctrl.set_irq(PHONY_HARD_IRQ)