"""Model of the nRF52 TIMER (timer/counter) peripherals.

Counter mode is only partly supported: the counter counts, but CC matches
are not checked in that mode. All five TIMERs have six working CC registers.
Only TIMER0 to TIMER2 have an interrupt line mapped.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable

from nrfhwsim.irq_ctrl import IrqController
from nrfhwsim.irq_sources import Irq
from nrfhwsim.timeline import TIME_NEVER, HwModelError, TimeMachine

N_TIMERS = 5
N_CC = 6

SHORTS_COMPARE0_CLEAR_MASK = 1 << 0
SHORTS_COMPARE0_STOP_MASK = 1 << 8
INTEN_COMPARE0_MASK = 1 << 16
"""COMPAREn masks are the COMPARE0 masks shifted left by n."""

MODE_MASK = 0x3

_U32 = 0xFFFFFFFF
_U64 = 0xFFFFFFFFFFFFFFFF

_IRQS = {0: Irq.TIMER0, 1: Irq.TIMER1, 2: Irq.TIMER2}


class TimerTask(IntEnum):
    """TIMER tasks, valued by their register offsets."""

    START = 0x000
    STOP = 0x004
    COUNT = 0x008
    CLEAR = 0x00C
    SHUTDOWN = 0x010
    CAPTURE0 = 0x040
    CAPTURE1 = 0x044
    CAPTURE2 = 0x048
    CAPTURE3 = 0x04C
    CAPTURE4 = 0x050
    CAPTURE5 = 0x054


class TimerMode(IntEnum):
    """Values of the MODE register."""

    TIMER = 0
    COUNTER = 1
    LOW_POWER_COUNTER = 2


_CAPTURE_TASKS = {
    TimerTask.CAPTURE0: 0,
    TimerTask.CAPTURE1: 1,
    TimerTask.CAPTURE2: 2,
    TimerTask.CAPTURE3: 3,
    TimerTask.CAPTURE4: 4,
    TimerTask.CAPTURE5: 5,
}


@dataclass
class TimerRegisters:
    """The register interface of one TIMER."""

    tasks_start: int = 0
    tasks_stop: int = 0
    tasks_count: int = 0
    tasks_clear: int = 0
    tasks_capture: list[int] = field(default_factory=lambda: [0] * N_CC)
    events_compare: list[int] = field(default_factory=lambda: [0] * N_CC)
    shorts: int = 0
    intenset: int = 0
    intenclr: int = 0
    mode: int = 0
    bitmode: int = 0
    prescaler: int = 0
    cc: list[int] = field(default_factory=lambda: [0] * N_CC)


@dataclass
class _TimerState:
    running: bool = False
    inten: int = 0
    start_time: int = TIME_NEVER
    counter: int = 0
    cc_timers: list[int] = field(default_factory=lambda: [TIME_NEVER] * N_CC)


def _noop_event(_event: str) -> None:
    return None


class TimerBank:
    """The five TIMER instances and their combined timer.

    ``ppi_event`` is called with the name of each compare event, for example
    ``"TIMER2_EVENTS_COMPARE_3"``.
    """

    def __init__(
        self,
        time_machine: TimeMachine,
        irq_ctrl: IrqController,
        ppi_event: Callable[[str], None] | None = None,
    ) -> None:
        self._tm = time_machine
        self._irq_ctrl = irq_ctrl
        self._ppi_event = ppi_event or _noop_event
        self.regs: list[TimerRegisters] = []
        self._state: list[_TimerState] = []
        self.timer = TIME_NEVER
        self.reset()
        time_machine.register_timer("timer", lambda: self.timer)

    def reset(self) -> None:
        """Clear every register and stop every TIMER."""
        self.regs = [TimerRegisters() for _ in range(N_TIMERS)]
        self._state = [_TimerState() for _ in range(N_TIMERS)]
        self.timer = TIME_NEVER

    # Conversions

    def _time_to_counter(self, delta: int, t: int) -> int:
        return (((delta << 4) & _U64) >> self.regs[t].prescaler) & _U32

    def _counter_to_time(self, count: int, t: int) -> int:
        return (count << self.regs[t].prescaler) >> 4

    def _bitmode_mask(self, t: int) -> int:
        return {0: 0xFFFF, 1: 0xFF, 2: 0xFFFFFF}.get(self.regs[t].bitmode, _U32)

    def _wrap_time(self, t: int) -> int:
        return self._counter_to_time(self._bitmode_mask(t) + 1, t)

    def _in_timer_mode(self, t: int) -> bool:
        return self._state[t].running and self.regs[t].mode == TimerMode.TIMER

    # Timers

    def _update_master_timer(self) -> None:
        self.timer = min(
            (
                when
                for t, state in enumerate(self._state)
                if self._in_timer_mode(t)
                for when in state.cc_timers
            ),
            default=TIME_NEVER,
        )
        self._tm.find_next_timer_to_trigger()

    def _update_cc_timer(self, t: int, cc: int) -> None:
        state = self._state[t]
        if not self._in_timer_mode(t):
            state.cc_timers[cc] = TIME_NEVER
            return
        next_match = state.start_time + self._counter_to_time(self.regs[t].cc[cc], t)
        now = self._tm.get_hw_time()
        wrap = self._wrap_time(t)
        while next_match <= now:
            next_match += wrap
        state.cc_timers[cc] = next_match

    def _update_all_cc_timers(self, t: int) -> None:
        for cc in range(N_CC):
            self._update_cc_timer(t, cc)

    # Tasks

    def task_start(self, t: int) -> None:
        """START task; a non-zero counter resumes from its value."""
        state = self._state[t]
        if state.running:
            return
        state.running = True
        if self.regs[t].mode == TimerMode.TIMER:
            state.start_time = self._tm.get_hw_time() - self._counter_to_time(
                state.counter, t
            )
            self._update_all_cc_timers(t)
            self._update_master_timer()

    def task_stop(self, t: int) -> None:
        """STOP task; the counter value is kept for a later START."""
        state = self._state[t]
        if not state.running:
            return
        state.running = False
        state.counter = self._time_to_counter(
            (self._tm.get_hw_time() - state.start_time) & _U64, t
        )
        state.cc_timers = [TIME_NEVER] * N_CC
        self._update_master_timer()

    def task_capture(self, t: int, cc: int) -> None:
        """CAPTURE[cc] task: copy the counter value into CC[cc]."""
        regs = self.regs[t]
        state = self._state[t]
        if regs.mode != TimerMode.TIMER:
            regs.cc[cc] = state.counter & self._bitmode_mask(t)
            return
        if state.start_time == TIME_NEVER:
            warnings.warn(
                f"TIMER{t} TASK_CAPTURE[{cc}] triggered on a timer which was "
                "never started => you get garbage",
                RuntimeWarning,
                stacklevel=2,
            )
        elapsed = (self._tm.get_hw_time() - state.start_time) & _U64
        regs.cc[cc] = self._time_to_counter(elapsed, t) & self._bitmode_mask(t)
        self._update_cc_timer(t, cc)
        self._update_master_timer()

    def task_clear(self, t: int) -> None:
        """CLEAR task: set the counter to zero."""
        state = self._state[t]
        state.counter = 0
        if self.regs[t].mode == TimerMode.TIMER:
            state.start_time = self._tm.get_hw_time()
            self._update_all_cc_timers(t)
            self._update_master_timer()

    def task_count(self, t: int) -> None:
        """COUNT task: increment the counter in counter mode while running."""
        state = self._state[t]
        if self.regs[t].mode != TimerMode.TIMER and state.running:
            state.counter = (state.counter + 1) & _U32

    def task_trigger(self, t: int, task: TimerTask | int) -> None:
        """Trigger a task through its register, as the HAL does.

        SHUTDOWN is accepted and ignored; COUNT is not supported this way.
        """
        try:
            task = TimerTask(task)
        except ValueError:
            raise HwModelError(f"Not supported task started in nrf_timer {task}") from None
        regs = self.regs[t]
        if task in _CAPTURE_TASKS:
            cc = _CAPTURE_TASKS[task]
            regs.tasks_capture[cc] = 1
            self._regw_tasks_capture(t, cc)
        elif task is TimerTask.CLEAR:
            regs.tasks_clear = 1
            self._regw_tasks_clear(t)
        elif task is TimerTask.START:
            regs.tasks_start = 1
            self._regw_tasks_start(t)
        elif task is TimerTask.STOP:
            regs.tasks_stop = 1
            self._regw_tasks_stop(t)
        elif task is TimerTask.SHUTDOWN:
            pass
        else:
            raise HwModelError(f"Not supported task started in nrf_timer {int(task)}")

    # Register access

    def cc_set(self, t: int, cc: int, value: int) -> None:
        """Write a CC register."""
        self.regs[t].cc[cc] = value & _U32
        if self._in_timer_mode(t):
            self._update_cc_timer(t, cc)
            self._update_master_timer()

    def int_enable(self, t: int, mask: int) -> None:
        """Write INTENSET."""
        regs = self.regs[t]
        regs.intenset = mask
        if regs.intenset:
            state = self._state[t]
            state.inten |= regs.intenset
            regs.intenset = state.inten

    def int_disable(self, t: int, mask: int) -> None:
        """Write INTENCLR."""
        regs = self.regs[t]
        regs.intenclr = mask
        if regs.intenclr:
            state = self._state[t]
            state.inten &= ~regs.intenclr
            regs.intenset = state.inten
            regs.intenclr = 0

    def mode_set(self, t: int, mode: TimerMode | int) -> None:
        """Write the MODE field of the MODE register."""
        if mode == TimerMode.COUNTER:
            warnings.warn(
                "Counter mode is not fully supported", RuntimeWarning, stacklevel=2
            )
        regs = self.regs[t]
        regs.mode = (regs.mode & ~MODE_MASK) | (int(mode) & MODE_MASK)

    def _regw_tasks_start(self, t: int) -> None:
        regs = self.regs[t]
        if regs.tasks_start:
            regs.tasks_start = 0
            self.task_start(t)

    def _regw_tasks_stop(self, t: int) -> None:
        regs = self.regs[t]
        if regs.tasks_stop:
            regs.tasks_stop = 0
            self.task_stop(t)

    def _regw_tasks_capture(self, t: int, cc: int) -> None:
        regs = self.regs[t]
        if regs.tasks_capture[cc]:
            regs.tasks_capture[cc] = 0
            self.task_capture(t, cc)

    def _regw_tasks_clear(self, t: int) -> None:
        regs = self.regs[t]
        if regs.tasks_clear:
            regs.tasks_clear = 0
            self.task_clear(t)

    # Time machine interface

    def timer_triggered(self) -> None:
        """Handle the TIMER timer firing at the current hardware time."""
        for t in range(N_TIMERS):
            if not self._in_timer_mode(t):
                continue
            regs = self.regs[t]
            state = self._state[t]
            for cc in range(N_CC):
                if state.cc_timers[cc] != self.timer:
                    continue
                self._update_cc_timer(t, cc)
                if regs.shorts & (SHORTS_COMPARE0_CLEAR_MASK << cc):
                    self.task_clear(t)
                if regs.shorts & (SHORTS_COMPARE0_STOP_MASK << cc):
                    self.task_stop(t)
                regs.events_compare[cc] = 1
                self._ppi_event(f"TIMER{t}_EVENTS_COMPARE_{cc}")
                if state.inten & (INTEN_COMPARE0_MASK << cc):
                    irq = _IRQS.get(t)
                    if irq is None:
                        raise HwModelError(
                            f"TIMER{t} CC[{cc}] interrupt triggered but there is "
                            "no interrupt mapped for it"
                        )
                    self._irq_ctrl.set_irq(irq)
        self._update_master_timer()