"""Storage utilities for persisting enrollment records."""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from platformdirs import user_data_dir


APP_NAME = "mfa-totp"
APP_AUTHOR = "mfa-totp"
DEFAULT_NAME = "default"

_NAME_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")


def get_storage_dir(data_dir: Optional[Path] = None) -> Path:
    """
    Get the directory holding enrollment files.

    Args:
        data_dir: Explicit directory; defaults to the per-user data directory.

    Returns:
        Path to the storage directory.
    """
    if data_dir is not None:
        return Path(data_dir)
    return Path(user_data_dir(APP_NAME, APP_AUTHOR))


def get_enrollment_path(name: Optional[str] = None, data_dir: Optional[Path] = None) -> Path:
    enrollment_name = name or DEFAULT_NAME
    if not _NAME_RE.fullmatch(enrollment_name):
        raise ValueError(f"Invalid enrollment name: {enrollment_name!r}")
    return get_storage_dir(data_dir) / f"{enrollment_name}.json"


def save_enrollment(
    data: Dict[str, Any], name: Optional[str] = None, data_dir: Optional[Path] = None
) -> None:
    """
    Save an enrollment record to disk, readable only by the current user.

    Args:
        data: Enrollment record.
        name: Enrollment name (default: "default").
        data_dir: Storage directory override.
    """
    path = get_enrollment_path(name, data_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    if "name" not in data:
        data["name"] = name or DEFAULT_NAME

    # Write atomically using a fresh temporary file; mkstemp creates it 0o600
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(json.dumps(data, indent=2))
        temp_path.replace(path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


def load_enrollment(name: Optional[str] = None, data_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load an enrollment record from disk.

    Raises:
        FileNotFoundError: If the enrollment file does not exist.
        ValueError: If the enrollment file contains invalid JSON.
    """
    path = get_enrollment_path(name, data_dir)
    if not path.exists():
        raise FileNotFoundError(
            f"Enrollment '{name or DEFAULT_NAME}' not found at {path}. "
            "Enroll first using Enrollment.issue()."
        )

    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid enrollment file format: {e}") from e


def delete_enrollment(name: Optional[str] = None, data_dir: Optional[Path] = None) -> bool:
    """Delete an enrollment record. Returns False if it did not exist."""
    path = get_enrollment_path(name, data_dir)
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def list_enrollments(data_dir: Optional[Path] = None) -> list[str]:
    """List all stored enrollment names."""
    storage_dir = get_storage_dir(data_dir)
    if not storage_dir.exists():
        return []
    return sorted(path.stem for path in storage_dir.glob("*.json") if path.is_file())
