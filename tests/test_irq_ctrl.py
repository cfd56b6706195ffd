from collections import Counter

import pytest

from nrfhwsim.irq_ctrl import PHONY_HARD_IRQ, IrqController
from nrfhwsim.timeline import TIME_NEVER, HwModelError, TimeMachine


@pytest.fixture
def tm():
    return TimeMachine(hw_time=100)


@pytest.fixture
def calls():
    return Counter()


@pytest.fixture
def ctrl(tm, calls):
    return IrqController(
        tm, lambda: calls.update(["hw"]), lambda: calls.update(["sw"])
    )


def pend(ctrl, *irqs, enable=True):
    for irq in irqs:
        if enable:
            ctrl.enable_irq(irq)
        ctrl.set_irq(irq)


def test_default_priority_is_lowest(ctrl):
    assert ctrl.get_priority(5) == 255


def test_set_irq_enabled_marks_status_and_schedules(tm, ctrl):
    pend(ctrl, 3)
    assert ctrl.status == 1 << 3
    assert ctrl.timer == 100
    assert (tm.next_timer_name, tm.next_timer_time) == ("irq_ctrl", 100)


def test_set_irq_disabled_only_premask(ctrl, calls):
    pend(ctrl, 4, enable=False)
    assert (ctrl.status, ctrl.premask) == (0, 1 << 4)
    ctrl.enable_irq(4)
    assert calls["sw"] == 1
    assert ctrl.status == 1 << 4


def test_set_irq_while_locked_does_not_wake(ctrl):
    ctrl.change_lock(True)
    pend(ctrl, 2)
    assert ctrl.timer == TIME_NEVER
    assert ctrl.status == 1 << 2


def test_change_lock_returns_previous_and_unlock_delivers(ctrl, calls):
    assert ctrl.change_lock(True) is False
    pend(ctrl, 1)
    assert calls["sw"] == 0
    assert ctrl.change_lock(False) is True
    assert calls["sw"] == 1


def test_unlock_without_pending_does_nothing(ctrl, calls):
    assert ctrl.change_lock(True) is False
    assert ctrl.change_lock(False) is True
    assert ctrl.status == 0
    assert ctrl.locked is False
    assert calls["sw"] == 0


def test_highest_priority_irq_locked(ctrl):
    pend(ctrl, 2)
    ctrl.change_lock(True)
    assert ctrl.highest_priority_irq() is None


@pytest.mark.parametrize(
    "clear,expected_premask",
    [
        (lambda c: c.clear_irq(1), 1 << 9),
        (lambda c: c.clear_all_enabled_irqs(), 1 << 9),
        (lambda c: c.clear_all_irqs(), 0),
    ],
)
def test_clearing(ctrl, clear, expected_premask):
    pend(ctrl, 1)
    pend(ctrl, 9, enable=False)
    clear(ctrl)
    assert (ctrl.status, ctrl.premask) == (0, expected_premask)


def test_enable_disable(ctrl):
    ctrl.enable_irq(10)
    assert ctrl.is_irq_enabled(10) is True
    ctrl.disable_irq(10)
    assert ctrl.is_irq_enabled(10) is False


@pytest.mark.parametrize("method,key", [("raise_im", "hw"), ("raise_im_from_sw", "sw")])
def test_raise_respects_lock(ctrl, calls, method, key):
    raise_now = getattr(ctrl, method)
    raise_now(3)
    assert ctrl.premask == 1 << 3
    assert ctrl.status == 0
    assert calls[key] == 1
    assert ctrl.change_lock(True) is False
    raise_now(3)
    assert ctrl.premask == 1 << 3
    assert ctrl.highest_priority_irq() is None
    assert calls[key] == 1


def test_phony_hard_irq_ignores_lock_once(ctrl, calls):
    assert ctrl.change_lock(True) is False
    ctrl.raise_im(PHONY_HARD_IRQ)
    assert (ctrl.status, ctrl.premask) == (0, 0)
    assert calls["hw"] == 1
    ctrl.raise_im(3)
    assert ctrl.premask == 1 << 3
    assert calls["hw"] == 1


def test_timer_triggered(tm, ctrl, calls):
    ctrl.set_irq(0)
    ctrl.timer_triggered()
    assert ctrl.timer == TIME_NEVER
    assert calls["hw"] == 1
    assert tm.next_timer_name is None


def test_reset_restores_defaults(ctrl):
    ctrl.set_priority(3, 0)
    ctrl.enable_irq(3)
    ctrl.change_lock(True)
    ctrl.reset()
    assert (ctrl.get_priority(3), ctrl.mask, ctrl.locked) == (255, 0, False)


@pytest.mark.parametrize("irq,prio", [(32, 0), (-1, 0), (0, 256)])
def test_invalid_priority(ctrl, irq, prio):
    with pytest.raises(HwModelError):
        ctrl.set_priority(irq, prio)