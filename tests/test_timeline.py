import pytest

from nrfhwsim.timeline import TIME_NEVER, HwModelError, TimeMachine


def test_no_timers_means_never():
    tm = TimeMachine()
    assert tm.next_timer() == (None, TIME_NEVER)
    assert tm.find_next_timer_to_trigger() == TIME_NEVER


def test_earliest_timer_wins():
    tm = TimeMachine()
    times = {"a": 50, "b": 20, "c": TIME_NEVER}
    for name in times:
        tm.register_timer(name, lambda n=name: times[n])
    assert tm.next_timer() == ("b", 20)
    times["a"] = 5
    assert tm.find_next_timer_to_trigger() == 5
    assert tm.next_timer_name == "a"


def test_tie_goes_to_first_registered():
    tm = TimeMachine()
    tm.register_timer("first", lambda: 10)
    tm.register_timer("second", lambda: 10)
    assert tm.next_timer()[0] == "first"


def test_duplicate_timer_rejected():
    tm = TimeMachine()
    tm.register_timer("x", lambda: 1)
    with pytest.raises(HwModelError):
        tm.register_timer("x", lambda: 2)


def test_time_does_not_go_backwards():
    tm = TimeMachine(hw_time=100)
    tm.set_hw_time(150)
    assert tm.get_hw_time() == 150
    with pytest.raises(HwModelError):
        tm.set_hw_time(149)


@pytest.mark.parametrize("hw", [0, 1, 1000, 123456])
def test_abs_hw_round_trip(hw):
    tm = TimeMachine(abs_offset=250)
    assert tm.abs_time_to_hw_time(tm.hw_time_to_abs_time(hw)) == hw
    assert tm.hw_time_to_abs_time(hw) - hw == 250


def test_never_is_preserved_by_conversions():
    tm = TimeMachine(abs_offset=7)
    assert tm.hw_time_to_abs_time(TIME_NEVER) == TIME_NEVER
    assert tm.abs_time_to_hw_time(TIME_NEVER) == TIME_NEVER