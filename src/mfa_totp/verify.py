"""Verification of submitted TOTP codes with a bounded drift window."""

import logging
import re
from dataclasses import dataclass
from typing import Iterator, Optional

from cryptography.hazmat.primitives import constant_time

from mfa_totp.errors import InvalidParameter
from mfa_totp.hotp import MAX_COUNTER, generate_hotp
from mfa_totp.totp import OtpConfig, Timestamp, counter_at


logger = logging.getLogger(__name__)

DEFAULT_DRIFT_STEPS = 1
RECOMMENDED_MAX_DRIFT_STEPS = 2

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of a verification attempt.

    ``matched_counter`` is set only when the code was accepted. Callers that
    want replay protection remember the last accepted counter per secret and
    reject results whose counter is not greater than it.
    """

    accepted: bool
    matched_counter: Optional[int] = None

    def __bool__(self) -> bool:
        return self.accepted


REJECTED = VerificationResult(accepted=False)


def candidate_counters(current: int, drift_steps: int) -> Iterator[int]:
    """Yield counters around ``current`` in order of increasing distance."""
    yield current
    for step in range(1, drift_steps + 1):
        yield current - step
        yield current + step


def verify_totp(
    config: OtpConfig,
    submitted_code: str,
    at_time: Optional[Timestamp] = None,
    drift_steps: int = DEFAULT_DRIFT_STEPS,
) -> VerificationResult:
    """
    Validate a user-submitted code against a config.

    Wrong, malformed and out-of-window codes are all reported the same way,
    as a rejected result, so callers cannot tell an attacker which it was.
    Only configuration defects raise.

    Args:
        config: The OTP configuration the code was generated from.
        submitted_code: The code as typed by the user.
        at_time: Verification time (default: now).
        drift_steps: Adjacent time steps accepted on either side (default: 1).

    Returns:
        VerificationResult with the matching counter on success.

    Raises:
        InvalidParameter: If drift_steps is negative or the config is invalid.
    """
    if isinstance(drift_steps, bool) or not isinstance(drift_steps, int) or drift_steps < 0:
        raise InvalidParameter("drift_steps must be a non-negative integer")
    if drift_steps > RECOMMENDED_MAX_DRIFT_STEPS:
        logger.debug("drift_steps=%d widens the guessing window beyond the recommended maximum", drift_steps)

    current = counter_at(at_time, config.period)

    if not isinstance(submitted_code, str):
        return REJECTED
    code = _WHITESPACE_RE.sub("", submitted_code)
    if len(code) != config.digits or not code.isascii() or not code.isdigit():
        return REJECTED

    submitted = code.encode("ascii")
    for counter in candidate_counters(current, drift_steps):
        if counter < 0 or counter > MAX_COUNTER:
            continue
        expected = generate_hotp(config.secret, counter, config.digits, config.algorithm)
        if constant_time.bytes_eq(expected.encode("ascii"), submitted):
            logger.debug("Code accepted at drift offset %+d", counter - current)
            return VerificationResult(accepted=True, matched_counter=counter)

    return REJECTED
