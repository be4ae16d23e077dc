"""RFC 4648 Base32 codec for OTP secrets."""

import base64
import binascii
import re

from mfa_totp.errors import InvalidBase32


_ALPHABET_RE = re.compile(r"[A-Z2-7]*")
_SEPARATORS_RE = re.compile(r"[\s-]+")

# Trailing characters in a final 8-char group that encode whole bytes.
_VALID_TAIL_LENGTHS = (0, 2, 4, 5, 7)


def encode(data: bytes, padding: bool = False) -> str:
    """
    Encode raw bytes as uppercase Base32 text.

    Args:
        data: Bytes to encode.
        padding: Whether to keep trailing ``=`` padding (default: False,
            which is what otpauth URIs and authenticator apps expect).

    Returns:
        Base32 text.
    """
    text = base64.b32encode(bytes(data)).decode("ascii")
    if not padding:
        text = text.rstrip("=")
    return text


def decode(text: str) -> bytes:
    """
    Decode Base32 text into raw bytes.

    Decoding is case-insensitive, accepts padded or unpadded input, and ignores
    whitespace and hyphens used to group characters for manual entry.

    Args:
        text: Base32 text.

    Returns:
        Decoded bytes.

    Raises:
        InvalidBase32: If the text contains characters outside the alphabet,
            misplaced padding, or has a length that cannot encode whole bytes.
    """
    if not isinstance(text, str):
        raise InvalidBase32("Base32 input must be text")

    cleaned = _SEPARATORS_RE.sub("", text).upper()
    body = cleaned.rstrip("=")
    padding = len(cleaned) - len(body)

    if not _ALPHABET_RE.fullmatch(body):
        raise InvalidBase32("Base32 input contains characters outside A-Z and 2-7")

    tail = len(body) % 8
    if tail not in _VALID_TAIL_LENGTHS:
        raise InvalidBase32(f"Base32 input has an impossible length ({len(body)} characters)")
    if padding and (len(body) + padding) % 8 != 0:
        raise InvalidBase32("Base32 input has incorrect padding")

    try:
        return base64.b32decode(body + "=" * (-len(body) % 8))
    except binascii.Error as e:
        raise InvalidBase32(f"Unable to decode Base32 input: {e}") from e
