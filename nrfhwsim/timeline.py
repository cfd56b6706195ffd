"""Simulated time base shared by the hardware models."""

from __future__ import annotations

from typing import Callable

TIME_NEVER = 2**64 - 1
"""Time value meaning "this event never happens"."""


class HwModelError(Exception):
    """Raised when a hardware model is driven into an unsupported state."""


class TimeMachine:
    """Keeps the simulated hardware time and the timers of the models.

    Every hardware model registers a callable that returns the time at which
    it next wants to be triggered. Whenever a model changes that time it calls
    :meth:`find_next_timer_to_trigger`, which recomputes the earliest one.
    """

    def __init__(self, hw_time: int = 0, abs_offset: int = 0) -> None:
        if hw_time < 0:
            raise HwModelError("hardware time cannot be negative")
        self._hw_time = hw_time
        self.abs_offset = abs_offset
        self._timers: dict[str, Callable[[], int]] = {}
        self.next_timer_name: str | None = None
        self.next_timer_time: int = TIME_NEVER

    def get_hw_time(self) -> int:
        """Simulated time, in microseconds, as seen by the hardware models."""
        return self._hw_time

    def set_hw_time(self, time: int) -> None:
        """Advance the hardware time; time never goes backwards."""
        if time < self._hw_time:
            raise HwModelError(
                f"cannot move hardware time back from {self._hw_time} to {time}"
            )
        self._hw_time = time

    def abs_time_to_hw_time(self, abstime: int) -> int:
        """Convert an absolute time into hardware time."""
        if abstime == TIME_NEVER:
            return TIME_NEVER
        return abstime - self.abs_offset

    def hw_time_to_abs_time(self, hwtime: int) -> int:
        """Convert a hardware time into absolute time."""
        if hwtime == TIME_NEVER:
            return TIME_NEVER
        return hwtime + self.abs_offset

    def register_timer(self, name: str, get_time: Callable[[], int]) -> None:
        """Register a model timer under a unique name."""
        if name in self._timers:
            raise HwModelError(f"timer {name!r} is already registered")
        self._timers[name] = get_time
        self.find_next_timer_to_trigger()

    def next_timer(self) -> tuple[str | None, int]:
        """Return the name and time of the earliest timer.

        Ties go to the timer registered first. With no pending timer the
        result is ``(None, TIME_NEVER)``.
        """
        best_name: str | None = None
        best_time = TIME_NEVER
        for name, get_time in self._timers.items():
            when = get_time()
            if when < best_time:
                best_name, best_time = name, when
        return best_name, best_time

    def find_next_timer_to_trigger(self) -> int:
        """Recompute the earliest timer after a model changed one of its own."""
        self.next_timer_name, self.next_timer_time = self.next_timer()
        return self.next_timer_time