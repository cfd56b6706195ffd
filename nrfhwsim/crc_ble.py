"""The 24-bit Bluetooth Low Energy packet CRC."""

from __future__ import annotations

_POLY_REFLECTED = 0xDA6000  # 0x00065B, bit reversed over 24 bits
_MASK_24 = 0xFFFFFF


def _build_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            crc = (crc >> 1) ^ _POLY_REFLECTED if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_TABLE = _build_table()


def reverse_byte(value: int) -> int:
    """Reverse the bit order of one byte."""
    return int(f"{value & 0xFF:08b}"[::-1], 2)


def reverse_24(value: int) -> int:
    """Reverse the bit order of a 24-bit word."""
    return (
        reverse_byte(value & 0xFF) << 16
        | reverse_byte((value >> 8) & 0xFF) << 8
        | reverse_byte((value >> 16) & 0xFF)
    )


def crc_ble(data: bytes, crc_init: int) -> int:
    """Compute the BLE CRC of ``data`` starting from ``crc_init``."""
    crc = reverse_24(crc_init)
    for byte in data:
        crc = (_TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)) & _MASK_24
    return crc


def append_crc_ble(data: bytes, crc_init: int) -> bytes:
    """Return ``data`` followed by its three CRC bytes, least significant first."""
    return bytes(data) + crc_ble(data, crc_init).to_bytes(3, "little")