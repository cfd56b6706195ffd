"""Model of the interrupt controller seen by the simulated CPU."""

from __future__ import annotations

from typing import Callable

from nrfhwsim.timeline import TIME_NEVER, HwModelError, TimeMachine

PHONY_WEAK_IRQ = 0xFFFE
"""Wakes the CPU if interrupts are not locked; has no status bit or handler."""

PHONY_HARD_IRQ = 0xFFFF
"""Wakes the CPU even if interrupts are locked (only when raised by hardware)."""

NBR_IRQS = 32
"""Number of real interrupt lines."""

LOWEST_PRIORITY = 255
IDLE_PRIORITY = 256
"""Running priority when no interrupt handler is executing."""


class IrqController:
    """Pending, masked and prioritised interrupts, plus the global lock.

    ``premask`` holds every raised interrupt; ``status`` only those that were
    enabled in ``mask`` when raised. Priority 0 is the highest, 255 the lowest.
    """

    def __init__(
        self,
        time_machine: TimeMachine,
        on_interrupt_raised: Callable[[], None] | None = None,
        on_irq_from_sw: Callable[[], None] | None = None,
    ) -> None:
        self._tm = time_machine
        self._on_interrupt_raised = on_interrupt_raised
        self._on_irq_from_sw = on_irq_from_sw
        self.timer = TIME_NEVER
        self.status = 0
        self.premask = 0
        self.mask = 0
        self.locked = False
        self._lock_ignore = False
        self.current_priority = IDLE_PRIORITY
        self._priorities = [LOWEST_PRIORITY] * NBR_IRQS
        self.reset()
        time_machine.register_timer("irq_ctrl", lambda: self.timer)

    def _notify_interrupt_raised(self) -> None:
        if self._on_interrupt_raised is not None:
            self._on_interrupt_raised()

    def _notify_irq_from_sw(self) -> None:
        if self._on_irq_from_sw is not None:
            self._on_irq_from_sw()

    def reset(self) -> None:
        """Disable every interrupt, unlock, and set all priorities to the lowest."""
        self.mask = 0
        self.premask = 0
        self.locked = False
        self._lock_ignore = False
        self._priorities = [LOWEST_PRIORITY] * NBR_IRQS

    @staticmethod
    def _check_irq(irq: int) -> None:
        if not 0 <= irq < NBR_IRQS:
            raise HwModelError(f"interrupt {irq} does not exist")

    def set_priority(self, irq: int, prio: int) -> None:
        """Set the priority (0 highest, 255 lowest) of an interrupt."""
        self._check_irq(irq)
        if not 0 <= prio <= LOWEST_PRIORITY:
            raise HwModelError(f"priority {prio} out of range 0..{LOWEST_PRIORITY}")
        self._priorities[irq] = prio

    def get_priority(self, irq: int) -> int:
        """Return the priority of an interrupt."""
        self._check_irq(irq)
        return self._priorities[irq]

    def highest_priority_irq(self) -> int | None:
        """Return the pending interrupt that should run now, if any.

        It must have a higher priority than the currently running one. Among
        equal priorities the lowest interrupt number wins. ``None`` if the
        interrupts are locked or nothing qualifies.
        """
        if self.locked:
            return None
        winner: int | None = None
        winner_prio = IDLE_PRIORITY
        pending = self.status
        irq = 0
        while pending:
            if pending & 1:
                prio = self._priorities[irq] if irq < NBR_IRQS else LOWEST_PRIORITY
                if winner_prio > prio and self.current_priority > prio:
                    winner, winner_prio = irq, prio
            pending >>= 1
            irq += 1
        return winner

    def change_lock(self, new_lock: bool) -> bool:
        """Lock or unlock interrupts and return the previous lock state.

        Unlocking with interrupts pending hands control to the software
        interrupt handler immediately.
        """
        previous = self.locked
        self.locked = bool(new_lock)
        if previous and not self.locked and self.status:
            self._notify_irq_from_sw()
        return previous

    def clear_all_enabled_irqs(self) -> None:
        """Forget every pending interrupt that is currently enabled."""
        self.status = 0
        self.premask &= ~self.mask

    def clear_all_irqs(self) -> None:
        """Forget every pending interrupt."""
        self.status = 0
        self.premask = 0

    def disable_irq(self, irq: int) -> None:
        """Mask an interrupt."""
        self.mask &= ~(1 << irq)

    def is_irq_enabled(self, irq: int) -> bool:
        """Whether an interrupt is unmasked."""
        return bool(self.mask & (1 << irq))

    def clear_irq(self, irq: int) -> None:
        """Clear one pending interrupt."""
        bit = ~(1 << irq)
        self.status &= bit
        self.premask &= bit

    def enable_irq(self, irq: int) -> None:
        """Unmask an interrupt; if it was pending it is raised at once.

        Only to be called from software threads.
        """
        self.mask |= 1 << irq
        if self.premask & (1 << irq):
            self.raise_im_from_sw(irq)

    def _raise_prefix(self, irq: int) -> None:
        if irq < NBR_IRQS:
            self.premask |= 1 << irq
            if self.mask & (1 << irq):
                self.status |= 1 << irq
        elif irq == PHONY_HARD_IRQ:
            self._lock_ignore = True

    def set_irq(self, irq: int) -> None:
        """Raise an interrupt; the CPU is woken one delta cycle from now.

        The CPU is woken even if the interrupt is masked, but not while
        interrupts are locked (unless it is :data:`PHONY_HARD_IRQ`).
        """
        self._raise_prefix(irq)
        if not self.locked or self._lock_ignore:
            self.timer = self._tm.get_hw_time()
            self._tm.find_next_timer_to_trigger()

    def _raise_from_hw_now(self) -> None:
        if not self.locked or self._lock_ignore:
            self._lock_ignore = False
            self._notify_interrupt_raised()

    def raise_im(self, irq: int) -> None:
        """Raise an interrupt and wake the CPU immediately (hardware side)."""
        self._raise_prefix(irq)
        self._raise_from_hw_now()

    def raise_im_from_sw(self, irq: int) -> None:
        """Raise an interrupt immediately from a software thread."""
        self._raise_prefix(irq)
        if not self.locked:
            self._notify_irq_from_sw()

    def timer_triggered(self) -> None:
        """Deliver the wake-up scheduled by :meth:`set_irq`."""
        self.timer = TIME_NEVER
        self._raise_from_hw_now()
        self._tm.find_next_timer_to_trigger()