import pytest

from nrfhwsim.irq_sources import PPI_PERIPHERAL_ID, Irq, irq_for_peripheral
from nrfhwsim.timeline import HwModelError


@pytest.mark.parametrize(
    "name,index,expected",
    [
        ("POWER", None, Irq.POWER_CLOCK),
        ("CLOCK", None, Irq.POWER_CLOCK),
        ("RADIO", None, Irq.RADIO),
        ("TIMER", 0, Irq.TIMER0),
        ("TIMER", 2, Irq.TIMER2),
        ("TIMER", 4, Irq.TIMER4),
        ("RTC", 0, Irq.RTC0),
        ("RTC", 1, Irq.RTC1),
        ("AAR", None, Irq.CCM_AAR),
        ("CCM", None, Irq.CCM_AAR),
        ("ECB", None, Irq.ECB),
        ("RNG", None, Irq.RNG),
    ],
)
def test_known_peripherals(name, index, expected):
    assert irq_for_peripheral(name, index) == expected


def test_ppi_uses_its_peripheral_number():
    assert irq_for_peripheral("PPI") == PPI_PERIPHERAL_ID == 0x1F


@pytest.mark.parametrize(
    "name,index,number",
    [
        ("TIMER", 0, 8),
        ("RTC", 1, 17),
        ("TIMER", 3, 26),
        ("RADIO", None, 1),
        ("POWER", None, 0),
    ],
)
def test_documented_numbers(name, index, number):
    assert irq_for_peripheral(name, index) == number


def test_case_insensitive_name():
    assert irq_for_peripheral("timer", 1) == Irq.TIMER1


@pytest.mark.parametrize("name,index", [("RTC", 2), ("UART", 0), ("TIMER", 5), ("RADIO", 0)])
def test_unknown_peripheral_raises(name, index):
    with pytest.raises(HwModelError):
        irq_for_peripheral(name, index)