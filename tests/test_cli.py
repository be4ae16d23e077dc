"""Tests for the command-line interface."""

from unittest.mock import patch

import pytest

from mfa_totp.cli import main
from mfa_totp.enrollment import Enrollment, EnrollmentState
from mfa_totp.totp import generate_totp


@pytest.fixture(autouse=True)
def data_dir(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MFA_TOTP_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("MFA_TOTP_ISSUER", raising=False)
    return tmp_path


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_enroll_prints_uri_and_key(capsys, data_dir):
    assert main(["enroll", "alice@example.com", "--issuer", "Example"]) == 0

    out = capsys.readouterr().out
    enrollment = Enrollment.load(data_dir=data_dir)
    assert enrollment.provisioning_uri in out
    assert enrollment.manual_entry_key in out
    assert "otpauth://totp/Example:alice%40example.com?" in out


def test_enroll_uses_configured_issuer(monkeypatch, capsys, data_dir):
    monkeypatch.setenv("MFA_TOTP_ISSUER", "FromEnv")
    assert main(["enroll", "alice", "--digits", "8", "--algorithm", "SHA512"]) == 0
    config = Enrollment.load(data_dir=data_dir).config
    assert config.issuer == "FromEnv"
    assert config.digits == 8
    assert config.algorithm.value == "SHA512"


def test_enroll_invalid_period(capsys):
    assert main(["enroll", "alice", "--period", "0"]) == 1
    assert "Enrollment failed" in capsys.readouterr().err


def test_code_and_verify(capsys, data_dir):
    assert main(["enroll", "alice", "--name", "work"]) == 0

    assert main(["code", "--name", "work"]) == 0
    code = capsys.readouterr().out.strip().splitlines()[-1]
    assert len(code) == 6 and code.isdigit()

    assert main(["verify", code, "--name", "work"]) == 0
    assert "Code accepted (verified)" in capsys.readouterr().out
    assert Enrollment.state_of("work", data_dir) is EnrollmentState.VERIFIED

    # A second use of the same code is a replay
    assert main(["verify", code, "--name", "work"]) == 1
    assert "not accepted" in capsys.readouterr().err


def test_verify_wrong_and_malformed_codes_look_the_same(capsys, data_dir):
    main(["enroll", "alice"])
    enrollment = Enrollment.load(data_dir=data_dir)
    wrong = "%06d" % ((int(generate_totp(enrollment.config)) + 500000) % 1000000)
    capsys.readouterr()

    assert main(["verify", wrong, "--drift", "0"]) == 1
    wrong_err = capsys.readouterr().err
    assert main(["verify", "12ab"]) == 1
    assert capsys.readouterr().err == wrong_err


def test_code_missing_enrollment(capsys):
    assert main(["code", "--name", "missing"]) == 1
    assert "not found" in capsys.readouterr().err


def test_list_and_remove(capsys, data_dir):
    assert main(["list"]) == 0
    assert "No enrollments found" in capsys.readouterr().out

    main(["enroll", "alice@example.com", "--issuer", "Example", "--name", "alice"])
    capsys.readouterr()
    assert main(["ls"]) == 0
    assert "alice: Example:alice@example.com (secret_issued)" in capsys.readouterr().out

    assert main(["rm", "--name", "alice"]) == 0
    assert Enrollment.state_of("alice", data_dir) is EnrollmentState.UNENROLLED


@patch("mfa_totp.secret.os.urandom", side_effect=NotImplementedError)
def test_fatal_without_csprng(mock_urandom, capsys):
    assert main(["list"]) == 2
    assert "secure random source" in capsys.readouterr().err


def test_list_reports_unreadable_records(capsys, data_dir):
    main(["enroll", "alice", "--name", "alice"])
    capsys.readouterr()
    with patch("mfa_totp.enrollment.storage.load_enrollment", side_effect=PermissionError("denied")):
        assert main(["list"]) == 0
    assert "alice: (error loading)" in capsys.readouterr().out
