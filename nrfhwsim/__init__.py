"""Models of nRF52 RTC, TIMER and interrupt controller on a simulated clock, plus the BLE CRC and crystal drift."""

__version__ = "0.1.0"

__all__ = [
    "crc_ble",
    "fake_timer",
    "hw_args",
    "irq_ctrl",
    "irq_sources",
    "rtc",
    "ticker",
    "timeline",
    "timer",
    "xo",
]