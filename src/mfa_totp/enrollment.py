"""TOTP enrollment lifecycle and persistence."""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from mfa_totp import storage
from mfa_totp.hotp import Algorithm
from mfa_totp.secret import DEFAULT_SECRET_LENGTH, Secret, generate_secret
from mfa_totp.totp import DEFAULT_PERIOD, OtpConfig, Timestamp, generate_totp, time_remaining
from mfa_totp.uri import build_provisioning_uri
from mfa_totp.verify import DEFAULT_DRIFT_STEPS, REJECTED, VerificationResult, verify_totp


logger = logging.getLogger(__name__)


class EnrollmentState(str, Enum):
    """Lifecycle of an account's enrollment."""

    UNENROLLED = "unenrolled"
    SECRET_ISSUED = "secret_issued"
    VERIFIED = "verified"


class Enrollment:
    """
    An account's TOTP enrollment.

    The secret is generated exactly once, in :meth:`issue`, and persisted
    immediately. Re-enrolling replaces the record with a new secret; an
    existing secret is never modified.
    """

    def __init__(
        self,
        config: OtpConfig,
        state: EnrollmentState = EnrollmentState.SECRET_ISSUED,
        last_counter: Optional[int] = None,
        name: Optional[str] = None,
        data_dir: Optional[Path] = None,
    ):
        """
        Initialize an Enrollment instance.

        Args:
            config: OTP configuration holding the secret.
            state: Current lifecycle state.
            last_counter: Counter of the last accepted code, for replay rejection.
            name: Enrollment name for storage.
            data_dir: Storage directory override.
        """
        self.config = config
        self.state = EnrollmentState(state)
        self.last_counter = last_counter
        self.name = name or storage.DEFAULT_NAME
        self.data_dir = data_dir

    def __repr__(self) -> str:
        return f"Enrollment(name={self.name!r}, state={self.state.value!r}, config={self.config!r})"

    @classmethod
    def issue(
        cls,
        account_label: str,
        issuer: str,
        algorithm: Union[Algorithm, str] = Algorithm.SHA1,
        digits: int = 6,
        period: int = DEFAULT_PERIOD,
        secret_length: int = DEFAULT_SECRET_LENGTH,
        name: Optional[str] = None,
        data_dir: Optional[Path] = None,
    ) -> "Enrollment":
        """
        Issue a new secret for an account and persist it.

        Args:
            account_label: Account name shown in the authenticator app.
            issuer: Service name shown in the authenticator app.
            algorithm: HMAC algorithm (default: SHA1).
            digits: Code length (default: 6).
            period: Time step in seconds (default: 30).
            secret_length: Secret length in bytes (default: 20).
            name: Enrollment name (default: "default").
            data_dir: Storage directory override.

        Returns:
            Enrollment in the SECRET_ISSUED state.

        Raises:
            InvalidParameter: If any parameter is invalid.
            InsecureRandomUnavailable: If no secure random source exists.
        """
        config = OtpConfig(
            issuer=issuer,
            account_label=account_label,
            secret=generate_secret(secret_length),
            algorithm=Algorithm.parse(algorithm),
            digits=digits,
            period=period,
        )
        # Fails on an empty issuer or label before anything is written
        build_provisioning_uri(config)

        enrollment = cls(config, EnrollmentState.SECRET_ISSUED, name=name, data_dir=data_dir)
        enrollment.save()
        logger.info("Issued new secret for enrollment '%s'", enrollment.name)
        return enrollment

    @classmethod
    def load(cls, name: Optional[str] = None, data_dir: Optional[Path] = None) -> "Enrollment":
        """
        Load an existing enrollment from disk.

        Raises:
            FileNotFoundError: If the enrollment does not exist.
            ValueError: If the enrollment file is invalid.
        """
        data = storage.load_enrollment(name, data_dir)
        try:
            config = OtpConfig.for_secret(
                data["secret"],
                issuer=data["issuer"],
                account_label=data["account_label"],
                algorithm=data.get("algorithm", Algorithm.SHA1.value),
                digits=int(data.get("digits", 6)),
                period=int(data.get("period", DEFAULT_PERIOD)),
            )
            state = EnrollmentState(data.get("state", EnrollmentState.SECRET_ISSUED.value))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid enrollment file: missing or invalid field {e}") from e

        last_counter = data.get("last_counter")
        return cls(
            config,
            state,
            last_counter=int(last_counter) if last_counter is not None else None,
            name=name,
            data_dir=data_dir,
        )

    @classmethod
    def state_of(cls, name: Optional[str] = None, data_dir: Optional[Path] = None) -> EnrollmentState:
        """Return the stored state, or UNENROLLED if no record exists."""
        try:
            return cls.load(name, data_dir).state
        except FileNotFoundError:
            return EnrollmentState.UNENROLLED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "issuer": self.config.issuer,
            "account_label": self.config.account_label,
            "secret": self.config.secret.base32,
            "algorithm": self.config.algorithm.value,
            "digits": self.config.digits,
            "period": self.config.period,
            "state": self.state.value,
            "last_counter": self.last_counter,
        }

    def save(self) -> None:
        """Save enrollment data to disk."""
        storage.save_enrollment(self.to_dict(), self.name, self.data_dir)

    def abandon(self) -> None:
        """Discard the enrollment, returning the account to UNENROLLED."""
        storage.delete_enrollment(self.name, self.data_dir)
        self.state = EnrollmentState.UNENROLLED
        logger.info("Abandoned enrollment '%s'", self.name)

    @property
    def provisioning_uri(self) -> str:
        return build_provisioning_uri(self.config)

    @property
    def manual_entry_key(self) -> str:
        """Base32 secret, grouped in fours for typing into an authenticator."""
        key = self.config.secret.base32
        return " ".join(key[i : i + 4] for i in range(0, len(key), 4))

    def current_code(self, at_time: Optional[Timestamp] = None) -> str:
        return generate_totp(self.config, at_time)

    def seconds_remaining(self, at_time: Optional[Timestamp] = None) -> float:
        return time_remaining(self.config, at_time)

    def confirm(
        self,
        code: str,
        at_time: Optional[Timestamp] = None,
        drift_steps: int = DEFAULT_DRIFT_STEPS,
        persist: bool = True,
    ) -> VerificationResult:
        """
        Verify a submitted code, rejecting replays of already-accepted codes.

        The first accepted code moves the enrollment to VERIFIED.

        Args:
            code: Code typed by the user.
            at_time: Verification time (default: now).
            drift_steps: Adjacent time steps accepted on either side.
            persist: Whether to save the updated state (default: True).

        Returns:
            VerificationResult; rejected for wrong, expired or replayed codes.

        Raises:
            RuntimeError: If the enrollment was abandoned.
        """
        if self.state is EnrollmentState.UNENROLLED:
            raise RuntimeError(f"Enrollment '{self.name}' has been abandoned")

        result = verify_totp(self.config, code, at_time, drift_steps)
        if not result.accepted:
            return result

        if self.last_counter is not None and result.matched_counter <= self.last_counter:
            logger.info("Rejected replayed code for enrollment '%s'", self.name)
            return REJECTED

        self.last_counter = result.matched_counter
        if self.state is EnrollmentState.SECRET_ISSUED:
            self.state = EnrollmentState.VERIFIED
            logger.info("Enrollment '%s' verified", self.name)

        if persist:
            self.save()
        return result
