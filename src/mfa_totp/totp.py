"""RFC 6238 TOTP (Time-based One-Time Password) implementation."""

import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Union

from mfa_totp.errors import InvalidParameter
from mfa_totp.hotp import Algorithm, generate_hotp, validate_digits
from mfa_totp.secret import Secret


DEFAULT_PERIOD = 30

Timestamp = Union[int, float, datetime]


@dataclass(frozen=True)
class OtpConfig:
    """
    Everything needed to derive TOTP codes for one enrolled account.

    ``digits`` and ``period`` must stay fixed for the lifetime of a secret:
    changing them invalidates entries already provisioned in authenticator
    apps, so a config is immutable and is replaced rather than edited.
    """

    issuer: str
    account_label: str
    secret: Secret = field(repr=False)
    algorithm: Algorithm = Algorithm.SHA1
    digits: int = 6
    period: int = DEFAULT_PERIOD

    def __post_init__(self) -> None:
        if not isinstance(self.secret, Secret):
            raise InvalidParameter("secret must be a Secret instance")
        object.__setattr__(self, "algorithm", Algorithm.parse(self.algorithm))
        validate_digits(self.digits)
        validate_period(self.period)

    @classmethod
    def for_secret(
        cls,
        secret: Union[Secret, bytes, str],
        issuer: str = "",
        account_label: str = "",
        algorithm: Union[Algorithm, str] = Algorithm.SHA1,
        digits: int = 6,
        period: int = DEFAULT_PERIOD,
    ) -> "OtpConfig":
        """
        Build a config from a Secret, raw bytes or Base32 text.

        Raises:
            InvalidBase32: If a text secret is not valid Base32.
            InvalidParameter: If any other parameter is invalid.
        """
        if isinstance(secret, str):
            secret = Secret.from_base32(secret)
        elif not isinstance(secret, Secret):
            secret = Secret(secret)
        return cls(
            issuer=issuer,
            account_label=account_label,
            secret=secret,
            algorithm=Algorithm.parse(algorithm),
            digits=digits,
            period=period,
        )


def validate_period(period: int) -> int:
    if isinstance(period, bool) or not isinstance(period, int):
        raise InvalidParameter("period must be an integer number of seconds")
    if period <= 0:
        raise InvalidParameter(f"period must be positive, got {period}")
    return period


def unix_seconds(at_time: Optional[Timestamp] = None) -> float:
    """
    Convert a timestamp to Unix seconds.

    Args:
        at_time: Unix seconds, a datetime (naive values are taken as UTC),
            or None for the current time.
    """
    if at_time is None:
        return time.time()
    if isinstance(at_time, datetime):
        if at_time.tzinfo is None:
            at_time = at_time.replace(tzinfo=timezone.utc)
        return at_time.timestamp()
    if isinstance(at_time, bool) or not isinstance(at_time, (int, float)):
        raise InvalidParameter("at_time must be Unix seconds or a datetime")
    return at_time


def counter_at(at_time: Optional[Timestamp], period: int = DEFAULT_PERIOD) -> int:
    """
    Derive the TOTP time-step counter, ``floor(unix_time / period)``.

    Raises:
        InvalidParameter: If period is not positive or the time precedes the epoch.
    """
    period = validate_period(period)
    seconds = unix_seconds(at_time)
    if seconds < 0 or not math.isfinite(seconds):
        raise InvalidParameter("at_time must be a finite time at or after the Unix epoch")
    if isinstance(seconds, int):
        return seconds // period
    return math.floor(seconds / period)


def generate_totp(config: OtpConfig, at_time: Optional[Timestamp] = None) -> str:
    """
    Generate the TOTP code for a config at the given time.

    Args:
        config: The OTP configuration.
        at_time: Time to generate the code for (default: now).

    Returns:
        A zero-padded code of ``config.digits`` characters.

    Raises:
        InvalidParameter: If the config or time is invalid.
    """
    counter = counter_at(at_time, config.period)
    return generate_hotp(config.secret, counter, config.digits, config.algorithm)


def time_remaining(config: OtpConfig, at_time: Optional[Timestamp] = None) -> float:
    """Seconds until the code valid at ``at_time`` rolls over."""
    seconds = unix_seconds(at_time)
    return config.period - (seconds % config.period)
