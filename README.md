# nrfhwsim

Behavioural models of the nRF52 timing peripherals. They run on a simulated
microsecond clock rather than on real hardware, so you can exercise timing
logic, such as link-layer timers, compare matches and interrupt delivery,
against a deterministic timeline.

## Modules

- `nrfhwsim.timeline`: `TimeMachine` holds the simulated hardware time. It
  can only move forward, through `set_hw_time`. Every model registers a timer
  with it by name (`"irq_ctrl"`, `"fake_timer"`, `"test_ticker"`, `"rtc"`,
  `"timer"`). `next_timer()` returns the name and time of the earliest one,
  and ties go to the timer registered first. `TIME_NEVER` marks a timer that
  is not pending. `HwModelError` is raised wherever a model is driven into
  an unsupported state.
- `nrfhwsim.irq_ctrl`: `IrqController` has 32 interrupt lines. Each line
  has a priority (0 is the highest, 255 the lowest), a mask and a pending
  state, and there is a global lock. `set_irq` schedules a CPU wake-up in
  the current microsecond. `timer_triggered` delivers it, and
  `highest_priority_irq()` returns the interrupt that should run, or `None`.
  The `on_interrupt_raised` and `on_irq_from_sw` callbacks stand in for the
  CPU. `PHONY_HARD_IRQ` wakes the CPU even while interrupts are locked.
- `nrfhwsim.rtc`: `RtcBank` models three 24-bit real-time counters on the
  32.768 kHz LF clock. Each has a prescaler, four CC registers, overflow
  and the START/STOP/CLEAR/TRIGGER_OVERFLOW tasks (`RtcTask`). Registers
  live in `bank.regs[n]` (`RtcRegisters`). COUNTER is only refreshed by
  `counter_get` or `update_counter`. TICK events are not modelled and
  enabling them gives a `RuntimeWarning`. RTC2 has no interrupt and is
  never handled by `timer_triggered`.
- `nrfhwsim.timer`: `TimerBank` models five timers. Each has a prescaler,
  `bitmode`, six CC registers, capture, and the COMPARE-to-CLEAR/STOP
  shortcuts (`TimerTask`, `TimerMode`, `TimerRegisters`). In counter mode
  the counter counts, but CC matches are not checked. Only TIMER0 to TIMER2
  have an interrupt line; a compare interrupt on TIMER3 or TIMER4 raises
  `HwModelError`.
- `nrfhwsim.fake_timer`: `FakeTimer` wakes the CPU at a given time
  through `PHONY_HARD_IRQ`, for busy waits. The earliest request wins.
- `nrfhwsim.ticker`: `TestTicker` calls `on_tick(hw_time)` periodically or
  at a requested time. `awake_cpu_asap()` wakes the CPU in the same
  microsecond.
- `nrfhwsim.xo`: `TrivialXO` models a crystal oscillator with constant
  drift and a start offset, and converts between phy time and device time.
  A drift beyond ±300 ppm warns, and beyond ±1 % it raises.
- `nrfhwsim.crc_ble`: `crc_ble(data, crc_init)` computes the 24-bit
  Bluetooth Low Energy CRC. `append_crc_ble` returns the data followed by
  its three CRC bytes, least significant first. The module also has
  `reverse_byte` and `reverse_24`.
- `nrfhwsim.irq_sources`: `Irq` lists the nRF52 interrupt numbers.
  `irq_for_peripheral("TIMER", 1)` and similar calls map a modelled
  peripheral to its number.
- `nrfhwsim.hw_args`: `parse_hw_args(argv, xo)` reads `-start_offset`,
  `-xo_drift` and `-RealEncryption` (as `-opt=value` or `-opt value`) into
  an `HwArgs` and applies them to a `TrivialXO`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Example

```python
from nrfhwsim.timeline import TimeMachine
from nrfhwsim.irq_ctrl import IrqController
from nrfhwsim.irq_sources import Irq
from nrfhwsim.rtc import RtcBank
from nrfhwsim.crc_ble import append_crc_ble

tm = TimeMachine(0, 0)
woken = []
irqs = IrqController(tm, on_interrupt_raised=lambda: woken.append(tm.get_hw_time()))
events = []
rtcs = RtcBank(tm, irqs, ppi_event=events.append)

irqs.enable_irq(Irq.RTC0)
rtcs.notify_first_lf_tick()
rtcs.cc_set(0, 0, 32)          # match after 32 LF ticks
rtcs.int_enable(0, 1 << 16)    # COMPARE0 interrupt
rtcs.task_start(0)

name, when = tm.next_timer()   # ("rtc", 977)
tm.set_hw_time(when)
rtcs.timer_triggered()
assert rtcs.regs[0].events_compare[0] == 1
assert irqs.highest_priority_irq() == Irq.RTC0
assert rtcs.counter_get(0) == 32

name, when = tm.next_timer()   # ("irq_ctrl", 977)
irqs.timer_triggered()
assert woken == [977]

frame = append_crc_ble(b"\x00\x01\x02", 0x555555)
assert len(frame) == 6
```

You drive the simulation yourself: ask the `TimeMachine` for the next timer,
advance the time, and call that model's `timer_triggered` (or `triggered`).

## What it does not do

- There is no scheduler loop, no CPU model and no command-line program. The
  models only react to the calls you make.
- The PPI, radio, clock, AES and other peripherals are not included. Events
  that would go to the PPI are passed, by name, to the `ppi_event` callback
  you supply, for example `"RTC0_EVENTS_COMPARE_0"` or
  `"TIMER2_EVENTS_COMPARE_3"`.
- `HwArgs.use_real_aes` is recorded but nothing in the package encrypts.