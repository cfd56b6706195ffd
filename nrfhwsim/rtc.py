"""Model of the nRF52 RTC (real-time counter) peripherals.

Only what a BLE controller needs is modelled. TICK events are not, and
neither is the delay of tasks or of configuration changes into the LF clock
domain. Every RTC has four working CC registers. RTC2 has no interrupt line
and is never triggered by the time machine.

COUNTER is only refreshed when read through :meth:`RtcBank.counter_get` or
:meth:`RtcBank.update_counter`.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable

from nrfhwsim.irq_ctrl import IrqController
from nrfhwsim.irq_sources import Irq
from nrfhwsim.timeline import TIME_NEVER, HwModelError, TimeMachine

_log = logging.getLogger(__name__)

N_RTC = 3
N_CC = 4

COUNTER_MASK = 0xFFFFFF
"""COUNTER is 24 bits wide."""

TRIGGER_OVERFLOW_COUNTER_VALUE = 0xFFFFF0
"""COUNTER value set by the TRIGOVRFLW task."""

SUB_US_BITS = 9
"""Bits of sub-microsecond resolution used for exact LF clock arithmetic."""

LF_CLOCK_PERIOD = 15625
"""Period of the 32.768 kHz LF clock in sub-microsecond units (1/512 us)."""

TICK_MASK = 1 << 0
OVRFLW_MASK = 1 << 1
COMPARE0_MASK = 1 << 16
"""Bit masks shared by the EVTEN and INTEN registers; COMPAREn is COMPARE0 << n."""

_U32 = 0xFFFFFFFF


class RtcTask(IntEnum):
    """RTC tasks, valued by their register offsets."""

    START = 0x000
    STOP = 0x004
    CLEAR = 0x008
    TRIGGER_OVERFLOW = 0x00C


@dataclass
class RtcRegisters:
    """The register interface of one RTC."""

    tasks_start: int = 0
    tasks_stop: int = 0
    tasks_clear: int = 0
    tasks_trigovrflw: int = 0
    events_compare: list[int] = field(default_factory=lambda: [0] * N_CC)
    events_ovrflw: int = 0
    intenset: int = 0
    intenclr: int = 0
    evten: int = 0
    evtenset: int = 0
    evtenclr: int = 0
    counter: int = 0
    prescaler: int = 0
    cc: list[int] = field(default_factory=lambda: [0] * N_CC)


@dataclass
class _RtcState:
    running: bool = False
    inten: int = 0
    counter: int = 0
    start_sub_us: int = TIME_NEVER
    start_negative_sub_us: int = 0
    cc_timers: list[int] = field(default_factory=lambda: [TIME_NEVER] * N_CC)
    overflow_timer: int = TIME_NEVER
    overflow_timer_sub_us: int = TIME_NEVER


def _sub_us_to_us(sub_us: int) -> int:
    """Convert sub-microsecond units to microseconds, rounding up."""
    us = sub_us >> SUB_US_BITS
    if sub_us % (1 << SUB_US_BITS):
        us += 1
    return us


def _us_to_sub_us(us: int) -> int:
    return us << SUB_US_BITS


class RtcBank:
    """The three RTC instances and their combined timer.

    ``ppi_event``, if given, is called with the name of each event routed to
    the PPI, for example ``"RTC0_EVENTS_COMPARE_1"`` or ``"RTC1_EVENTS_OVRFLW"``.
    """

    def __init__(
        self,
        time_machine: TimeMachine,
        irq_ctrl: IrqController,
        ppi_event: Callable[[str], None] | None = None,
    ) -> None:
        self._tm = time_machine
        self._irq_ctrl = irq_ctrl
        self._ppi_event = ppi_event
        self._first_lf_tick_sub_us = 0
        self.regs: list[RtcRegisters] = []
        self._state: list[_RtcState] = []
        self.timer = TIME_NEVER
        self.reset()
        time_machine.register_timer("rtc", lambda: self.timer)

    def reset(self) -> None:
        """Clear every register and stop every RTC."""
        self.regs = [RtcRegisters() for _ in range(N_RTC)]
        self._state = [_RtcState() for _ in range(N_RTC)]
        self.timer = TIME_NEVER

    # Time conversions

    def _hw_time_sub_us(self) -> int:
        now = self._tm.get_hw_time()
        if now > _sub_us_to_us(TIME_NEVER):
            raise HwModelError("the RTC model only supports running for 1142 years")
        return _us_to_sub_us(now)

    def _last_lf_tick_sub_us(self) -> int:
        now = self._hw_time_sub_us()
        ticks = (now - self._first_lf_tick_sub_us) // LF_CLOCK_PERIOD
        return ticks * LF_CLOCK_PERIOD + self._first_lf_tick_sub_us

    def _tick_sub_us(self, rtc: int) -> int:
        return LF_CLOCK_PERIOD * (self.regs[rtc].prescaler + 1)

    def _sub_us_to_counter(self, delta: int, rtc: int) -> int:
        return delta // self._tick_sub_us(rtc)

    def _counter_to_sub_us(self, count: int, rtc: int) -> int:
        return count * self._tick_sub_us(rtc)

    def _wrap_sub_us(self, rtc: int) -> int:
        return self._counter_to_sub_us(COUNTER_MASK + 1, rtc)

    def _elapsed_count(self, rtc: int) -> int:
        state = self._state[rtc]
        delta = (
            self._hw_time_sub_us()
            - state.start_sub_us
            + state.start_negative_sub_us
        )
        return self._sub_us_to_counter(delta, rtc)

    # Timers

    def _counter_match_time(self, counter_match: int, rtc: int) -> tuple[int, int]:
        """Return when the counter next equals ``counter_match`` (us, sub-us)."""
        state = self._state[rtc]
        if not state.running:
            return TIME_NEVER, TIME_NEVER
        now = self._hw_time_sub_us()
        match = self._counter_to_sub_us(counter_match, rtc)
        wrap = self._wrap_sub_us(rtc)
        if state.start_sub_us > 0:
            next_match = state.start_sub_us + match
        elif match > state.start_negative_sub_us:
            next_match = match - state.start_negative_sub_us
        else:
            next_match = wrap + match - state.start_negative_sub_us
        while next_match <= now:
            next_match += wrap
        return _sub_us_to_us(next_match), next_match

    def _update_master_timer(self) -> None:
        candidates = [TIME_NEVER]
        for state in self._state:
            if state.running:
                candidates.extend(state.cc_timers)
                candidates.append(state.overflow_timer)
        self.timer = min(candidates)
        self._tm.find_next_timer_to_trigger()

    def _update_cc_timer(self, rtc: int, cc: int) -> None:
        self._state[rtc].cc_timers[cc], _ = self._counter_match_time(
            self.regs[rtc].cc[cc], rtc
        )

    def _update_overflow_timer(self, rtc: int) -> None:
        state = self._state[rtc]
        state.overflow_timer, state.overflow_timer_sub_us = self._counter_match_time(
            COUNTER_MASK + 1, rtc
        )

    def _update_timers(self, rtc: int) -> None:
        for cc in range(N_CC):
            self._update_cc_timer(rtc, cc)
        self._update_overflow_timer(rtc)
        self._update_master_timer()

    def _set_counter_to(self, value: int, rtc: int) -> None:
        """Move the virtual start time so that COUNTER reads ``value`` now.

        The prescaler is reset by every caller, so the counter is set as of
        the last LF clock tick. The start time may be virtually negative.
        """
        value &= COUNTER_MASK
        state = self._state[rtc]
        value_sub_us = self._counter_to_sub_us(value, rtc)
        last_tick = self._last_lf_tick_sub_us()
        if last_tick >= value_sub_us:
            state.start_sub_us = last_tick - value_sub_us
            state.start_negative_sub_us = 0
        else:
            state.start_sub_us = 0
            state.start_negative_sub_us = value_sub_us - last_tick
        state.counter = value
        self.regs[rtc].counter = value
        self._update_timers(rtc)

    # Events and interrupts

    @staticmethod
    def _irq_of(rtc: int) -> int:
        if rtc == 0:
            return Irq.RTC0
        if rtc == 1:
            return Irq.RTC1
        raise HwModelError(f"There is no IRQ mapped for RTC{rtc}")

    def _handle_event(self, rtc: int, event: str, mask: int) -> None:
        regs = self.regs[rtc]
        if regs.evten & mask and self._ppi_event is not None:
            self._ppi_event(event)
        if self._state[rtc].inten & mask:
            self._irq_ctrl.set_irq(self._irq_of(rtc))

    def _handle_cc_event(self, rtc: int, cc: int) -> None:
        if self._state[rtc].cc_timers[cc] != self.timer:
            return
        self._update_cc_timer(rtc, cc)
        _log.debug("RTC%d: CC%d matching now", rtc, cc)
        self.regs[rtc].events_compare[cc] = 1
        self._handle_event(rtc, f"RTC{rtc}_EVENTS_COMPARE_{cc}", COMPARE0_MASK << cc)

    def _handle_overflow_event(self, rtc: int) -> None:
        state = self._state[rtc]
        if state.overflow_timer != self.timer:
            return
        overflow_at = state.overflow_timer_sub_us
        self._update_overflow_timer(rtc)
        _log.debug("RTC%d: timer overflow", rtc)
        self.regs[rtc].events_ovrflw = 1
        self._handle_event(rtc, f"RTC{rtc}_EVENTS_OVRFLW", OVRFLW_MASK)
        state.start_sub_us = overflow_at
        state.start_negative_sub_us = 0

    def timer_triggered(self) -> None:
        """Handle the RTC timer firing at the current hardware time."""
        # RTC2 has no interrupt, so it is never handled here.
        for rtc in range(N_RTC - 1):
            if not self._state[rtc].running:
                continue
            for cc in range(N_CC):
                self._handle_cc_event(rtc, cc)
            # Last, as it may move the counter start time.
            self._handle_overflow_event(rtc)
        self._update_master_timer()

    @staticmethod
    def _check_not_supported(mask: int) -> None:
        if mask & TICK_MASK:
            warnings.warn(
                "RTC: The TICK functionality is not modelled",
                RuntimeWarning,
                stacklevel=3,
            )

    # Public interface

    def notify_first_lf_tick(self) -> None:
        """Record the current time as the first LF clock tick."""
        self._first_lf_tick_sub_us = self._hw_time_sub_us()
        _log.debug("RTC: first lf tick")

    def update_counter(self, rtc: int) -> None:
        """Refresh the COUNTER register of an RTC from the simulated time."""
        state = self._state[rtc]
        if state.running:
            self.regs[rtc].counter = self._elapsed_count(rtc) & COUNTER_MASK
        else:
            self.regs[rtc].counter = state.counter & COUNTER_MASK

    def counter_get(self, rtc: int) -> int:
        """Read COUNTER of an RTC."""
        self.update_counter(rtc)
        return self.regs[rtc].counter

    def task_start(self, rtc: int) -> None:
        """START task: run the counter on from its current value."""
        state = self._state[rtc]
        if state.running:
            return
        _log.debug("RTC%d: TASK_START", rtc)
        state.running = True
        self._set_counter_to(state.counter, rtc)

    def task_stop(self, rtc: int) -> None:
        """STOP task: freeze the counter, keeping its value."""
        state = self._state[rtc]
        if not state.running:
            return
        _log.debug("RTC%d: TASK_STOP", rtc)
        state.running = False
        state.counter = self._elapsed_count(rtc) & COUNTER_MASK
        state.cc_timers = [TIME_NEVER] * N_CC
        state.overflow_timer = TIME_NEVER
        self._update_master_timer()

    def task_clear(self, rtc: int) -> None:
        """CLEAR task: set the counter to zero."""
        _log.debug("RTC%d: TASK_CLEAR", rtc)
        self._set_counter_to(0, rtc)

    def task_trigger_overflow(self, rtc: int) -> None:
        """TRIGOVRFLW task: set the counter just below its overflow."""
        _log.debug("RTC%d: TASK_TRIGGER_OVERFLOW", rtc)
        self._set_counter_to(TRIGGER_OVERFLOW_COUNTER_VALUE, rtc)

    def task_trigger(self, rtc: int, task: RtcTask | int) -> None:
        """Trigger a task through its register, as the HAL does."""
        try:
            task = RtcTask(task)
        except ValueError:
            raise HwModelError(f"Not supported task started in nrf_rtc {rtc}") from None
        regs = self.regs[rtc]
        if task is RtcTask.START:
            regs.tasks_start = 1
            self._regw_tasks_start(rtc)
        elif task is RtcTask.STOP:
            regs.tasks_stop = 1
            self._regw_tasks_stop(rtc)
        elif task is RtcTask.CLEAR:
            regs.tasks_clear = 1
            self._regw_tasks_clear(rtc)
        else:
            regs.tasks_trigovrflw = 1
            self._regw_tasks_trigovrflw(rtc)

    def cc_set(self, rtc: int, channel: int, value: int) -> None:
        """Write a CC register."""
        self.regs[rtc].cc[channel] = value & _U32
        if self._state[rtc].running:
            self._update_cc_timer(rtc, channel)
            self._update_master_timer()

    def int_enable(self, rtc: int, mask: int) -> None:
        """Write INTENSET."""
        self.regs[rtc].intenset = mask
        self._regw_intenset(rtc)

    def int_disable(self, rtc: int, mask: int) -> None:
        """Write INTENCLR."""
        self.regs[rtc].intenclr = mask
        self._regw_intenclr(rtc)

    def event_enable(self, rtc: int, mask: int) -> None:
        """Write EVTENSET."""
        self.regs[rtc].evtenset = mask
        self._regw_evtenset(rtc)

    def event_disable(self, rtc: int, mask: int) -> None:
        """Write EVTENCLR."""
        self.regs[rtc].evtenclr = mask
        self._regw_evtenclr(rtc)

    def regw_sideeffects(self, rtc: int) -> None:
        """Apply the effects of whatever was written into the registers."""
        self._regw_tasks_start(rtc)
        self._regw_tasks_stop(rtc)
        self._regw_tasks_clear(rtc)
        self._regw_tasks_trigovrflw(rtc)
        self._regw_intenset(rtc)
        self._regw_intenclr(rtc)
        self._regw_evtenset(rtc)
        self._regw_evtenclr(rtc)

    # Register write side effects

    def _regw_tasks_start(self, rtc: int) -> None:
        regs = self.regs[rtc]
        if regs.tasks_start:
            regs.tasks_start = 0
            self.task_start(rtc)

    def _regw_tasks_stop(self, rtc: int) -> None:
        regs = self.regs[rtc]
        if regs.tasks_stop:
            regs.tasks_stop = 0
            self.task_stop(rtc)

    def _regw_tasks_clear(self, rtc: int) -> None:
        regs = self.regs[rtc]
        if regs.tasks_clear:
            regs.tasks_clear = 0
            self.task_clear(rtc)

    def _regw_tasks_trigovrflw(self, rtc: int) -> None:
        regs = self.regs[rtc]
        if regs.tasks_trigovrflw:
            regs.tasks_trigovrflw = 0
            self.task_trigger_overflow(rtc)

    def _regw_intenset(self, rtc: int) -> None:
        regs = self.regs[rtc]
        state = self._state[rtc]
        if not regs.intenset:
            return
        new_interrupts = regs.intenset & ~state.inten
        irq = self._irq_of(rtc)
        state.inten |= regs.intenset
        regs.intenset = state.inten
        for cc, pending in enumerate(regs.events_compare):
            if pending and new_interrupts & (COMPARE0_MASK << cc):
                self._irq_ctrl.set_irq(irq)
        self._check_not_supported(state.inten)

    def _regw_intenclr(self, rtc: int) -> None:
        regs = self.regs[rtc]
        state = self._state[rtc]
        if regs.intenclr:
            state.inten &= ~regs.intenclr
            regs.intenset = state.inten
            regs.intenclr = 0

    def _regw_evtenset(self, rtc: int) -> None:
        regs = self.regs[rtc]
        if regs.evtenset:
            regs.evten |= regs.evtenset
            regs.evtenset = regs.evten
            self._check_not_supported(regs.evten)

    def _regw_evtenclr(self, rtc: int) -> None:
        regs = self.regs[rtc]
        if regs.evtenclr:
            regs.evten &= ~regs.evtenclr
            regs.evtenset = regs.evten
            regs.evtenclr = 0