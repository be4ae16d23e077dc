"""otpauth:// provisioning URIs, as consumed by authenticator apps and QR encoders.

See also:
    https://github.com/google/google-authenticator/wiki/Key-Uri-Format
"""

from urllib.parse import parse_qsl, quote, unquote, unquote_plus, urlparse

from mfa_totp.errors import InvalidParameter
from mfa_totp.hotp import Algorithm
from mfa_totp.secret import Secret
from mfa_totp.totp import OtpConfig


SCHEME = "otpauth"
OTP_TYPE = "totp"


def _encode(value: str) -> str:
    return quote(value, safe="")


def build_provisioning_uri(config: OtpConfig) -> str:
    """
    Serialize an OTP configuration as an ``otpauth://totp/`` URI.

    Every parameter is emitted, even at its default value, so apps that ignore
    missing fields still provision exactly what the server will verify.

    Args:
        config: The OTP configuration to provision.

    Returns:
        Provisioning URI, also usable verbatim as a manual-entry string.

    Raises:
        InvalidParameter: If the issuer or account label is empty.
    """
    if not config.issuer or not config.issuer.strip():
        raise InvalidParameter("issuer must not be empty")
    if not config.account_label or not config.account_label.strip():
        raise InvalidParameter("account label must not be empty")

    issuer = _encode(config.issuer)
    label = f"{issuer}:{_encode(config.account_label)}"
    query = "&".join(
        [
            f"secret={config.secret.base32}",
            f"issuer={issuer}",
            f"algorithm={config.algorithm.value}",
            f"digits={config.digits}",
            f"period={config.period}",
        ]
    )
    return f"{SCHEME}://{OTP_TYPE}/{label}?{query}"


def parse_provisioning_uri(uri: str) -> OtpConfig:
    """
    Parse a TOTP provisioning URI back into an OtpConfig.

    Args:
        uri: An ``otpauth://totp/...`` URI.

    Returns:
        The OTP configuration described by the URI.

    Raises:
        InvalidParameter: If the URI is not a TOTP otpauth URI, lacks a secret,
            or carries conflicting or unsupported parameters.
        InvalidBase32: If the secret is not valid Base32.
    """
    parsed = urlparse(uri.strip())
    if parsed.scheme.lower() != SCHEME:
        raise InvalidParameter("Not an otpauth URI")
    if parsed.netloc.lower() != OTP_TYPE:
        raise InvalidParameter(f"Unsupported OTP type {parsed.netloc!r}, only totp is supported")

    # Split before unquoting so an escaped ':' inside the label survives
    raw_label = parsed.path.lstrip("/")
    if ":" in raw_label:
        raw_issuer, raw_account = raw_label.split(":", 1)
        label_issuer = unquote(raw_issuer)
    else:
        raw_account = raw_label
        label_issuer = None
    account_label = unquote(raw_account).strip()

    params = {}
    for key, value in parse_qsl(parsed.query, keep_blank_values=True):
        params[key.lower()] = value

    secret_text = params.get("secret")
    if not secret_text:
        raise InvalidParameter("No secret found in URI")

    issuer = params.get("issuer", label_issuer)
    # Some apps encode spaces in the label issuer as '+'
    if label_issuer is not None and issuer not in (label_issuer, unquote_plus(raw_issuer)):
        raise InvalidParameter("If issuer is specified in both label and parameters, it should be equal")

    try:
        digits = int(params.get("digits", 6))
        period = int(params.get("period", 30))
    except ValueError as e:
        raise InvalidParameter(f"Invalid numeric parameter in URI: {e}") from e

    return OtpConfig(
        issuer=issuer or "",
        account_label=account_label,
        secret=Secret.from_base32(secret_text),
        algorithm=Algorithm.parse(params.get("algorithm", Algorithm.SHA1.value)),
        digits=digits,
        period=period,
    )
