"""Shared-secret generation for OTP enrollment."""

import logging
import os
from dataclasses import dataclass, field

from mfa_totp import base32
from mfa_totp.errors import InsecureRandomUnavailable, InvalidParameter


logger = logging.getLogger(__name__)

DEFAULT_SECRET_LENGTH = 20  # 160 bits, the RFC 4226 recommendation
MIN_SECRET_LENGTH = 16


@dataclass(frozen=True)
class Secret:
    """
    An opaque, immutable OTP shared secret.

    The raw bytes are excluded from ``repr`` so a secret never leaks into logs
    or tracebacks by accident.
    """

    raw: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.raw, (bytes, bytearray)):
            raise InvalidParameter("Secret must be a byte sequence")
        if len(self.raw) < 1:
            raise InvalidParameter("Secret must be at least 1 byte long")
        object.__setattr__(self, "raw", bytes(self.raw))

    def __len__(self) -> int:
        return len(self.raw)

    @property
    def base32(self) -> str:
        """Unpadded Base32 form used for storage and manual entry."""
        return base32.encode(self.raw)

    @classmethod
    def from_base32(cls, text: str) -> "Secret":
        """
        Rebuild a secret from its Base32 text form.

        Raises:
            InvalidBase32: If the text is not valid Base32.
            InvalidParameter: If the text decodes to zero bytes.
        """
        return cls(base32.decode(text))


def ensure_secure_random() -> None:
    """
    Check once at process start that a secure random source is available.

    Raises:
        InsecureRandomUnavailable: If the platform has no CSPRNG.
    """
    _read_entropy(1)


def generate_secret(length: int = DEFAULT_SECRET_LENGTH) -> Secret:
    """
    Generate a new random shared secret.

    Args:
        length: Secret length in bytes (default: 20, minimum: 16).

    Returns:
        A fresh Secret.

    Raises:
        InvalidParameter: If length is below the minimum.
        InsecureRandomUnavailable: If the platform has no CSPRNG.
    """
    if isinstance(length, bool) or not isinstance(length, int):
        raise InvalidParameter("Secret length must be an integer")
    if length < MIN_SECRET_LENGTH:
        raise InvalidParameter(
            f"Secrets must be at least {MIN_SECRET_LENGTH} bytes ({MIN_SECRET_LENGTH * 8} bits)"
        )

    secret = Secret(_read_entropy(length))
    logger.debug("Generated %d-byte secret", length)
    return secret


def _read_entropy(length: int) -> bytes:
    try:
        return os.urandom(length)
    except NotImplementedError as e:
        raise InsecureRandomUnavailable(
            "No cryptographically secure random source is available on this platform"
        ) from e
