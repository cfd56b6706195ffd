"""Interrupt numbers of the nRF52 family and the peripheral to IRQ mapping."""

from __future__ import annotations

from enum import IntEnum

from nrfhwsim.timeline import HwModelError


class Irq(IntEnum):
    """Interrupt line numbers."""

    POWER_CLOCK = 0
    RADIO = 1
    UART0 = 2
    SPI0_TWI0 = 3
    SPI1_TWI1 = 4
    NFCT = 5
    GPIOTE = 6
    ADC = 7
    TIMER0 = 8
    TIMER1 = 9
    TIMER2 = 10
    RTC0 = 11
    TEMP = 12
    RNG = 13
    ECB = 14
    CCM_AAR = 15
    WDT = 16
    RTC1 = 17
    QDEC = 18
    LPCOMP = 19
    SWI0 = 20
    SWI1 = 21
    SWI2 = 22
    SWI3 = 23
    SWI4 = 24
    SWI5 = 25
    TIMER3 = 26
    TIMER4 = 27
    PWM0 = 28
    PDM = 29
    MWU = 32
    PWM1 = 33
    PWM2 = 34
    SPIM2_SPIS2_SPI2 = 35
    RTC2 = 36
    I2S = 37
    FPU = 38


PPI_PERIPHERAL_ID = 0x1F
"""The PPI has no interrupt; its peripheral number is returned instead."""

_PERIPHERALS: dict[tuple[str, int | None], int] = {
    ("POWER", None): Irq.POWER_CLOCK,
    ("CLOCK", None): Irq.POWER_CLOCK,
    ("RADIO", None): Irq.RADIO,
    ("TIMER", 0): Irq.TIMER0,
    ("TIMER", 1): Irq.TIMER1,
    ("TIMER", 2): Irq.TIMER2,
    ("RTC", 0): Irq.RTC0,
    ("RNG", None): Irq.RNG,
    ("ECB", None): Irq.ECB,
    ("AAR", None): Irq.CCM_AAR,
    ("CCM", None): Irq.CCM_AAR,
    ("RTC", 1): Irq.RTC1,
    ("TIMER", 3): Irq.TIMER3,
    ("TIMER", 4): Irq.TIMER4,
    ("PPI", None): PPI_PERIPHERAL_ID,
}


def irq_for_peripheral(name: str, index: int | None = None) -> int:
    """Return the interrupt (peripheral) number of a modelled peripheral.

    ``name`` is the peripheral kind (``"TIMER"``, ``"RTC"``, ``"RADIO"``...)
    and ``index`` its instance number, or ``None`` for single instances.
    """
    try:
        return _PERIPHERALS[(name.upper(), index)]
    except KeyError:
        raise HwModelError(
            "Tried to get the peripheral number of an address unknown to "
            f"these HW models: {name}{'' if index is None else index}"
        ) from None