# src/erp_session/utils/resilient_io.py
"""
File helpers for the durable credential store.

Credential files hold live refresh tokens, so writes are atomic (temp file in
the same directory, then move) and can be restricted to the owner (0o600).
Readers tolerate a missing or corrupt file and report it instead of raising.
"""

import json
import os
import shutil
import tempfile
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union


def safe_write_json(
    path: Union[str, Path],
    data: Dict[str, Any],
    logger: logging.Logger,
    indent: int = 2,
    secure_permissions: bool = False,
) -> bool:
    """
    Atomically write JSON data to a file.

    Args:
        path: File path to write to
        data: JSON-serializable data
        logger: Logger for warnings
        indent: JSON indentation level (default: 2)
        secure_permissions: Set file permissions to 0o600 before the move

    Returns:
        True on success, False on failure (never raises)
    """
    path = Path(path)
    tmp_fd = None
    tmp_path = None

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(data, indent=indent, ensure_ascii=True)

        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=path.parent, prefix=".tmp_", suffix=".json", text=True
        )
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            f.write(content)
            tmp_fd = None

        if secure_permissions:
            try:
                os.chmod(tmp_path, 0o600)
            except (OSError, AttributeError):
                # Windows may not support chmod
                pass

        shutil.move(tmp_path, path)
        tmp_path = None
        return True

    except (OSError, TypeError, ValueError) as e:
        logger.warning(f"Failed to write JSON to {path}: {e}")
        return False

    finally:
        if tmp_fd is not None:
            try:
                os.close(tmp_fd)
            except OSError:
                pass
        if tmp_path and os.path.exists(tmp_path):
            try:
                os.unlink(tmp_path)
            except OSError:
                pass


def read_json_file(
    path: Union[str, Path], logger: logging.Logger
) -> Optional[Dict[str, Any]]:
    """
    Read a JSON object from disk.

    Returns:
        The decoded object, an empty dict if the file does not exist,
        or None if the file exists but is unreadable or not a JSON object.
    """
    path = Path(path)
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read JSON from {path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {path.name}: expected a JSON object")
        return None
    return data
