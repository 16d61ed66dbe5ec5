"""Tests for the filename checksum."""

from gfarch.checksum import checksum


def test_known_filename():
    value = checksum("sea_turtle_01.brres")
    reversed_value = int.from_bytes(value.to_bytes(4, "little"), "big")
    assert reversed_value == 0xCC91B7B8


def test_str_and_bytes_agree():
    assert checksum("bg.tpl") == checksum(b"bg.tpl")


def test_empty_name():
    assert checksum(b"") == 0


def test_single_byte():
    assert checksum(b"A") == 0x41


def test_two_bytes():
    assert checksum(b"AB") == 0x42 + 0x41 * 137


def test_order_sensitive():
    assert checksum(b"ab") != checksum(b"ba")


def test_embedded_nul_participates():
    assert checksum(b"a\x00") == checksum(b"a") * 137
    assert checksum(b"a\x00b") != checksum(b"ab")


def test_wraps_to_32_bits():
    value = checksum(b"\xff" * 64)
    assert 0 <= value <= 0xFFFFFFFF
