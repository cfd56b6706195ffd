import pytest

from nrfhwsim.fake_timer import FakeTimer
from nrfhwsim.irq_ctrl import IrqController
from nrfhwsim.timeline import TIME_NEVER, TimeMachine


@pytest.fixture
def env():
    tm = TimeMachine(hw_time=50)
    raised = []
    ctrl = IrqController(tm, lambda: raised.append(tm.get_hw_time()))
    fake = FakeTimer(tm, ctrl)
    return tm, ctrl, fake, raised


def test_starts_idle(env):
    tm, _, fake, _ = env
    assert fake.timer == TIME_NEVER
    assert tm.next_timer_name is None


def test_wake_in_time_schedules(env):
    tm, _, fake, _ = env
    fake.wake_in_time(80)
    assert fake.timer == 80
    assert tm.next_timer() == ("fake_timer", 80)


def test_earlier_request_prevails(env):
    _, _, fake, _ = env
    fake.wake_in_time(80)
    fake.wake_in_time(120)
    assert fake.timer == 80
    fake.wake_in_time(60)
    assert fake.timer == 60


def test_triggered_wakes_cpu_even_when_locked(env):
    tm, ctrl, fake, raised = env
    ctrl.change_lock(True)
    fake.wake_in_time(70)
    tm.set_hw_time(70)
    fake.triggered()
    assert fake.timer == TIME_NEVER
    assert ctrl.timer == 70
    assert tm.next_timer_name == "irq_ctrl"
    ctrl.timer_triggered()
    assert raised == [70]


def test_reset(env):
    _, _, fake, _ = env
    fake.wake_in_time(70)
    fake.reset()
    assert fake.timer == TIME_NEVER