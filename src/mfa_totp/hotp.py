"""RFC 4226 HOTP (HMAC-based One-Time Password) implementation."""

from enum import Enum
from typing import Union

from cryptography.hazmat.primitives import hashes, hmac

from mfa_totp.errors import InvalidParameter
from mfa_totp.secret import Secret


MIN_DIGITS = 6
MAX_DIGITS = 8
MAX_COUNTER = 2**64 - 1


class Algorithm(str, Enum):
    """HMAC hash algorithms supported by authenticator apps."""

    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    def hash_algorithm(self) -> hashes.HashAlgorithm:
        return _HASHES[self]()

    @classmethod
    def parse(cls, value: Union[str, "Algorithm"]) -> "Algorithm":
        """
        Look up an algorithm by name, accepting ``sha256`` or ``SHA-256``.

        Raises:
            InvalidParameter: If the algorithm is not supported.
        """
        if isinstance(value, cls):
            return value
        name = str(value).upper().replace("-", "")
        try:
            return cls(name)
        except ValueError as e:
            raise InvalidParameter(
                f"Unsupported algorithm {value!r}, must be SHA1, SHA256 or SHA512"
            ) from e


_HASHES = {
    Algorithm.SHA1: hashes.SHA1,
    Algorithm.SHA256: hashes.SHA256,
    Algorithm.SHA512: hashes.SHA512,
}


def validate_digits(digits: int) -> int:
    if isinstance(digits, bool) or not isinstance(digits, int):
        raise InvalidParameter("digits must be an integer")
    if not MIN_DIGITS <= digits <= MAX_DIGITS:
        raise InvalidParameter(f"digits must be between {MIN_DIGITS} and {MAX_DIGITS}, got {digits}")
    return digits


def generate_hotp(
    secret: Union[Secret, bytes],
    counter: int,
    digits: int = 6,
    algorithm: Union[Algorithm, str] = Algorithm.SHA1,
) -> str:
    """
    Generate an HOTP code using RFC 4226.

    Args:
        secret: The shared secret, as a Secret or raw bytes.
        counter: The moving counter value, 0 <= counter < 2**64.
        digits: Number of digits in the output code (6 to 8, default: 6).
        algorithm: HMAC hash algorithm (default: SHA1).

    Returns:
        A zero-padded HOTP code string.

    Raises:
        InvalidParameter: If the secret is empty, or the counter, digit count
            or algorithm is out of range.
    """
    raw_secret = secret.raw if isinstance(secret, Secret) else Secret(secret).raw
    digits = validate_digits(digits)
    algorithm = Algorithm.parse(algorithm)

    if isinstance(counter, bool) or not isinstance(counter, int):
        raise InvalidParameter("counter must be an integer")
    if not 0 <= counter <= MAX_COUNTER:
        raise InvalidParameter("counter must fit in an unsigned 64-bit integer")

    # Convert counter to 8-byte big-endian integer
    counter_bytes = counter.to_bytes(8, byteorder="big")

    mac = hmac.HMAC(raw_secret, algorithm.hash_algorithm())
    mac.update(counter_bytes)
    hmac_digest = mac.finalize()

    # Dynamic truncation (RFC 4226, Section 5.4)
    offset = hmac_digest[-1] & 0x0F
    binary = int.from_bytes(hmac_digest[offset : offset + 4], byteorder="big") & 0x7FFFFFFF

    # Generate code: binary % 10^digits, zero-padded
    code = binary % (10**digits)
    return f"{code:0{digits}d}"
