"""Command-line options of the hardware models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from nrfhwsim.timeline import HwModelError
from nrfhwsim.xo import TrivialXO


@dataclass
class HwArgs:
    """Options given to the hardware models."""

    xo_drift: float = 0.0
    start_offset: float = 0.0
    use_real_aes: bool = False

    def set_start_offset(self, value: float, xo: TrivialXO) -> None:
        """Offset in time of this device at the start of the simulation."""
        self.start_offset = value
        xo.set_time_offset(int(value))

    def set_xo_drift(self, value: float, xo: TrivialXO) -> None:
        """Linear XO drift of this device (for -30 ppm, -30e-6)."""
        self.xo_drift = value
        xo.set_drift(value)

    def set_use_real_aes(self, value: bool) -> None:
        """Use real AES encryption instead of sending plain text."""
        self.use_real_aes = value


_TRUE = {"1", "true"}
_FALSE = {"0", "false"}


def _parse_float(option: str, text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise HwModelError(f"option -{option} expects a number, got {text!r}") from None


def _parse_bool(option: str, text: str) -> bool:
    lowered = text.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise HwModelError(f"option -{option} expects 0/1, got {text!r}")


_OPTIONS = ("start_offset", "xo_drift", "RealEncryption")


def parse_hw_args(argv: Iterable[str], xo: TrivialXO) -> HwArgs:
    """Parse ``-option=value`` or ``-option value`` arguments into :class:`HwArgs`.

    Each option is applied as soon as it is found, so later options override
    earlier ones. A bare ``-RealEncryption`` switches real encryption on.
    """
    args = HwArgs()
    items = iter(argv)
    for item in items:
        if not item.startswith("-"):
            raise HwModelError(f"unexpected argument {item!r}")
        option, sep, value = item.lstrip("-").partition("=")
        if option not in _OPTIONS:
            raise HwModelError(f"unknown option {item!r}")
        if not sep:
            if option == "RealEncryption":
                value = "1"
            else:
                value = next(items, None)
                if value is None:
                    raise HwModelError(f"option -{option} needs a value")
        if option == "start_offset":
            args.set_start_offset(_parse_float(option, value), xo)
        elif option == "xo_drift":
            args.set_xo_drift(_parse_float(option, value), xo)
        else:
            args.set_use_real_aes(_parse_bool(option, value))
    return args