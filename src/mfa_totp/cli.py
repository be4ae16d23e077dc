"""Command-line interface for mfa-totp."""

import argparse
import logging
import sys
from typing import Optional

from mfa_totp import storage
from mfa_totp.config import Settings, load_settings
from mfa_totp.enrollment import Enrollment
from mfa_totp.errors import InsecureRandomUnavailable, OtpError
from mfa_totp.hotp import Algorithm
from mfa_totp.secret import ensure_secure_random


logger = logging.getLogger(__name__)


def _pick(value, default):
    return default if value is None else value


def enroll_command(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the enroll command."""
    try:
        enrollment = Enrollment.issue(
            args.account,
            _pick(args.issuer, settings.issuer),
            algorithm=_pick(args.algorithm, settings.algorithm),
            digits=_pick(args.digits, settings.digits),
            period=_pick(args.period, settings.period),
            secret_length=settings.secret_length,
            name=args.name,
            data_dir=settings.data_dir,
        )
        print(f"✓ Enrollment '{enrollment.name}' created")
        print("  Scan the provisioning URI as a QR code, or enter the key manually:")
        print(f"  Key: {enrollment.manual_entry_key}")
        print(f"  URI: {enrollment.provisioning_uri}")
        print("  Confirm with: mfa-totp verify <code>")
        return 0
    except (OtpError, ValueError) as e:
        print(f"✗ Enrollment failed: {e}", file=sys.stderr)
        return 1


def code_command(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the code command."""
    try:
        enrollment = Enrollment.load(name=args.name, data_dir=settings.data_dir)
        print(enrollment.current_code())
        print(f"valid for {enrollment.seconds_remaining():.0f}s", file=sys.stderr)
        return 0
    except FileNotFoundError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    except (OtpError, ValueError) as e:
        print(f"✗ Failed to generate code: {e}", file=sys.stderr)
        return 1


def verify_command(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the verify command."""
    drift = _pick(args.drift, settings.drift_steps)
    try:
        enrollment = Enrollment.load(name=args.name, data_dir=settings.data_dir)
        result = enrollment.confirm(args.code, drift_steps=drift)
    except FileNotFoundError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    except (OtpError, ValueError, RuntimeError) as e:
        print(f"✗ Verification failed: {e}", file=sys.stderr)
        return 1

    if result.accepted:
        print(f"✓ Code accepted ({enrollment.state.value})")
        return 0
    print("✗ Code not accepted", file=sys.stderr)
    return 1


def list_command(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the list command."""
    try:
        names = storage.list_enrollments(settings.data_dir)
    except OSError as e:
        print(f"✗ Failed to list enrollments: {e}", file=sys.stderr)
        return 1

    if not names:
        print("No enrollments found. Enroll first using:")
        print("  mfa-totp enroll <account>")
        return 0

    print("Enrollments:")
    for name in names:
        try:
            enrollment = Enrollment.load(name=name, data_dir=settings.data_dir)
            config = enrollment.config
            print(f"  {name}: {config.issuer}:{config.account_label} ({enrollment.state.value})")
        except (OtpError, ValueError, OSError) as e:
            logger.debug("Failed to load enrollment %s: %s", name, e)
            print(f"  {name}: (error loading)")
    return 0


def remove_command(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the remove command."""
    try:
        enrollment = Enrollment.load(name=args.name, data_dir=settings.data_dir)
    except FileNotFoundError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    except (OtpError, ValueError) as e:
        print(f"✗ Failed to load enrollment: {e}", file=sys.stderr)
        return 1
    enrollment.abandon()
    print(f"✓ Enrollment '{enrollment.name}' removed")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mfa-totp",
        description="TOTP enrollment and verification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    name_kwargs = dict(default=None, help='Enrollment name (default: "default")')

    # Enroll command
    enroll_parser = subparsers.add_parser("enroll", aliases=["new"], help="Issue a new TOTP secret")
    enroll_parser.add_argument("account", help="Account label shown in the authenticator app")
    enroll_parser.add_argument("--issuer", "-i", default=None, help="Issuer shown in the authenticator app")
    enroll_parser.add_argument(
        "--algorithm",
        "-a",
        default=None,
        choices=[a.value for a in Algorithm],
        help="HMAC algorithm (default: SHA1)",
    )
    enroll_parser.add_argument(
        "--digits",
        "-d",
        type=int,
        default=None,
        choices=[6, 7, 8],
        help="Number of digits in the code (default: 6)",
    )
    enroll_parser.add_argument("--period", "-p", type=int, default=None, help="Time step in seconds (default: 30)")
    enroll_parser.add_argument("--name", "-n", **name_kwargs)

    # Code command
    code_parser = subparsers.add_parser("code", aliases=["gen"], help="Print the current code")
    code_parser.add_argument("--name", "-n", **name_kwargs)

    # Verify command
    verify_parser = subparsers.add_parser("verify", aliases=["check"], help="Verify a submitted code")
    verify_parser.add_argument("code", help="Code from the authenticator app")
    verify_parser.add_argument("--name", "-n", **name_kwargs)
    verify_parser.add_argument(
        "--drift",
        type=int,
        default=None,
        help="Adjacent time steps accepted on either side (default: 1)",
    )

    # List command
    subparsers.add_parser("list", aliases=["ls"], help="List all enrollments")

    # Remove command
    remove_parser = subparsers.add_parser("remove", aliases=["rm"], help="Remove an enrollment")
    remove_parser.add_argument("--name", "-n", **name_kwargs)

    return parser


COMMANDS = {
    "enroll": enroll_command,
    "new": enroll_command,
    "code": code_command,
    "gen": code_command,
    "verify": verify_command,
    "check": verify_command,
    "list": list_command,
    "ls": list_command,
    "remove": remove_command,
    "rm": remove_command,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        ensure_secure_random()
    except InsecureRandomUnavailable as e:
        print(f"✗ {e}", file=sys.stderr)
        return 2

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"✗ Invalid configuration: {e}", file=sys.stderr)
        return 1

    return COMMANDS[args.command](args, settings)


if __name__ == "__main__":
    sys.exit(main())
