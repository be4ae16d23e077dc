"""Exception types raised by the one-time-password core."""


class OtpError(Exception):
    """Base class for all mfa-totp errors."""


class InsecureRandomUnavailable(OtpError, RuntimeError):
    """Raised when the platform offers no cryptographically secure random source.

    This is fatal: enrollment must be aborted rather than falling back to a
    predictable generator.
    """


class InvalidBase32(OtpError, ValueError):
    """Raised when text cannot be decoded as RFC 4648 Base32."""


class InvalidParameter(OtpError, ValueError):
    """Raised for misconfigured digits, period, algorithm, counter or secret."""
