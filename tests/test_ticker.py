import pytest

from nrfhwsim.irq_ctrl import IrqController
from nrfhwsim.ticker import TestTicker
from nrfhwsim.timeline import TIME_NEVER, TimeMachine


@pytest.fixture
def env():
    tm = TimeMachine(hw_time=1000, abs_offset=200)
    raised = []
    ticks = []
    ctrl = IrqController(tm, lambda: raised.append(tm.get_hw_time()))
    ticker = TestTicker(tm, ctrl, ticks.append)
    return tm, ctrl, ticker, raised, ticks


def test_idle_at_start(env):
    _, _, ticker, _, _ = env
    assert ticker.timer == TIME_NEVER


def test_periodic_ticks(env):
    tm, _, ticker, _, ticks = env
    ticker.set_period(10)
    assert ticker.timer == 1010
    assert tm.next_timer() == ("test_ticker", 1010)
    tm.set_hw_time(1010)
    ticker.triggered(1010)
    assert ticks == [1010]
    assert ticker.timer == 1020


def test_delta_tick_without_period_is_one_shot(env):
    tm, _, ticker, _, ticks = env
    ticker.set_next_tick_delta(5)
    assert ticker.timer == 1005
    tm.set_hw_time(1005)
    ticker.triggered(1005)
    assert ticks == [1005]
    assert ticker.timer == TIME_NEVER


def test_absolute_tick_uses_hw_time(env):
    tm, _, ticker, _, _ = env
    ticker.set_next_tick_absolute(1500)
    assert ticker.timer == tm.abs_time_to_hw_time(1500)
    assert tm.hw_time_to_abs_time(ticker.timer) == 1500


def test_awake_cpu_asap(env):
    tm, ctrl, ticker, raised, ticks = env
    ctrl.change_lock(True)
    ticker.set_next_tick_delta(5)
    ticker.awake_cpu_asap()
    assert ticker.timer == tm.get_hw_time()
    ticker.triggered(tm.get_hw_time())
    assert raised == [1000]
    assert ticks == []
    assert ticker.timer == 1005