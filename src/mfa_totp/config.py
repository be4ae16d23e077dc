"""Deployment-wide enrollment defaults loaded from environment variables.

The OTP core never reads configuration itself; these settings only supply
defaults to the enrollment flow and the command-line interface.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mfa_totp.hotp import MAX_DIGITS, MIN_DIGITS, Algorithm
from mfa_totp.secret import DEFAULT_SECRET_LENGTH, MIN_SECRET_LENGTH
from mfa_totp.totp import DEFAULT_PERIOD
from mfa_totp.verify import DEFAULT_DRIFT_STEPS


class Settings(BaseSettings):
    """Enrollment defaults, read from MFA_TOTP_* variables and .env."""

    model_config = SettingsConfigDict(
        env_prefix="MFA_TOTP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provisioning
    issuer: str = Field(default="mfa-totp", min_length=1)
    algorithm: Algorithm = Algorithm.SHA1
    digits: int = Field(default=6, ge=MIN_DIGITS, le=MAX_DIGITS)
    period: int = Field(default=DEFAULT_PERIOD, gt=0)
    secret_length: int = Field(default=DEFAULT_SECRET_LENGTH, ge=MIN_SECRET_LENGTH)

    # Verification
    drift_steps: int = Field(default=DEFAULT_DRIFT_STEPS, ge=0)

    # Storage; None means the per-user data directory
    data_dir: Optional[Path] = None

    @field_validator("algorithm", mode="before")
    @classmethod
    def _parse_algorithm(cls, value):
        return Algorithm.parse(value)


def load_settings(**overrides) -> Settings:
    """Load settings from the environment, applying explicit overrides."""
    return Settings(**{k: v for k, v in overrides.items() if v is not None})
