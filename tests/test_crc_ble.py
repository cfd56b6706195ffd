import pytest

from nrfhwsim.crc_ble import append_crc_ble, crc_ble, reverse_24, reverse_byte


def test_reverse_byte_is_an_involution():
    assert all(reverse_byte(reverse_byte(x)) == x for x in range(256))


def test_reverse_byte_endpoints():
    assert reverse_byte(1) == 0x80
    assert reverse_byte(0xFF) == 0xFF


@pytest.mark.parametrize("value", [0, 1, 0x555555, 0x123456, 0xFFFFFF])
def test_reverse_24_round_trip(value):
    assert reverse_24(reverse_24(value)) == value


def test_advertising_init_reversed():
    assert reverse_24(0x555555) == 0xAAAAAA


def test_empty_data_gives_reversed_init():
    assert crc_ble(b"", 0x123456) == reverse_24(0x123456)


def test_single_byte_matches_table_entry():
    assert crc_ble(b"\x01", 0) == 0x01B4C0
    assert crc_ble(b"\x80", 0) == 0xDA6000


@pytest.mark.parametrize(
    "payload", [b"", b"\x00", b"hello world", bytes(range(40)), b"\xff" * 17]
)
@pytest.mark.parametrize("crc_init", [0x555555, 0x000000, 0xABCDEF])
def test_appended_crc_checks_to_zero(payload, crc_init):
    framed = append_crc_ble(payload, crc_init)
    assert framed[: len(payload)] == payload
    assert len(framed) == len(payload) + 3
    assert crc_ble(framed, crc_init) == 0


def test_appended_bytes_are_little_endian_crc():
    framed = append_crc_ble(b"\x01", 0)
    assert framed == b"\x01\xc0\xb4\x01"


def test_crc_fits_24_bits_and_detects_change():
    a = crc_ble(b"packet-a", 0x555555)
    b = crc_ble(b"packet-b", 0x555555)
    assert 0 <= a <= 0xFFFFFF
    assert a != b