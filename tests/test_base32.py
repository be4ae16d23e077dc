"""Tests for the Base32 codec."""

import os

import pytest

from mfa_totp import base32
from mfa_totp.errors import InvalidBase32


def test_encode_rfc_secret():
    assert base32.encode(b"12345678901234567890") == "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


def test_encode_unpadded_by_default():
    assert base32.encode(b"foobar") == "MZXW6YTBOI"
    assert base32.encode(b"foobar", padding=True) == "MZXW6YTBOI======"


@pytest.mark.parametrize("length", range(16, 65))
def test_roundtrip(length):
    data = os.urandom(length)
    assert base32.decode(base32.encode(data)) == data
    assert base32.decode(base32.encode(data, padding=True)) == data


def test_decode_case_insensitive():
    assert base32.decode("mzxw6ytboi") == b"foobar"
    assert base32.decode("MzXw6YtBoI======") == b"foobar"


def test_decode_ignores_grouping():
    assert base32.decode("GEZD GNBV GY3T QOJQ GEZD GNBV GY3T QOJQ") == b"12345678901234567890"
    assert base32.decode("mzxw-6ytb-oi") == b"foobar"


def test_decode_empty():
    assert base32.decode("") == b""


@pytest.mark.parametrize("text", ["MZXW6YTB01", "MZXW6YTBOI!", "MZXW6Y8B", "MZ=XW6YTBOI"])
def test_decode_rejects_characters_outside_alphabet(text):
    with pytest.raises(InvalidBase32):
        base32.decode(text)


@pytest.mark.parametrize("text", ["A", "ABC", "ABCDEF", "ABCDEFGHA"])
def test_decode_rejects_impossible_length(text):
    with pytest.raises(InvalidBase32, match="impossible length"):
        base32.decode(text)


def test_decode_rejects_wrong_padding():
    with pytest.raises(InvalidBase32, match="padding"):
        base32.decode("MZXW6YTBOI==")


def test_decode_rejects_non_text():
    with pytest.raises(InvalidBase32):
        base32.decode(b"MZXW6YTBOI")


def test_invalid_base32_is_value_error():
    with pytest.raises(ValueError):
        base32.decode("not-a-valid-secret!")
