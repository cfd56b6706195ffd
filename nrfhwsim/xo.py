"""Simple model of a crystal oscillator with constant drift."""

from __future__ import annotations

import warnings

from nrfhwsim.timeline import HwModelError


class TrivialXO:
    """A clock with a constant drift and offset relative to the phy."""

    def __init__(self) -> None:
        self.drift = 0.0
        self.time_offset = 0.0

    def set_drift(self, drift: float) -> None:
        """Set the relative drift (for example -30e-6 for -30 ppm)."""
        if not -3e-4 <= drift <= 3e-4:
            if not -1e-2 <= drift <= 1e-2:
                raise HwModelError(f"Insane clock drift set ({drift * 1e6:.0f} ppm)")
            warnings.warn(
                f"Very high clock drift set ({drift * 1e6:.0f} ppm > 300ppm)",
                RuntimeWarning,
                stacklevel=2,
            )
        self.drift = drift

    def set_time_offset(self, offset_us: int) -> None:
        """Set the start offset of this device, given in microseconds."""
        if offset_us < 0:
            raise HwModelError(f"Time offset ({offset_us}) cannot be smaller than 0")
        self.time_offset = offset_us / 1e6

    def dev_time_from_phy(self, phy_time: float) -> float:
        """Convert a phy time into this device's time."""
        return (1.0 + self.drift) * phy_time - self.time_offset

    def phy_time_from_dev(self, dev_time: float) -> float:
        """Convert this device's time into phy time."""
        return (dev_time + self.time_offset) / (1.0 + self.drift)