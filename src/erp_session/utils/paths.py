# src/erp_session/utils/paths.py
"""
Default locations for files written by the session tool.

Runtime modes:
1. PyInstaller EXE -> files next to the executable
2. Script/Library  -> files in the current working directory
"""

import sys
from pathlib import Path
from typing import Optional, Union

DEFAULT_STORE_FILENAME = "erp_session.json"


def get_default_root() -> Path:
    """Directory containing the executable when frozen, else the working directory."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    return Path.cwd()


def get_logs_dir(root: Optional[Union[Path, str]] = None) -> Path:
    """
    Get the logs directory, creating it if needed.

    Args:
        root: Optional root directory. If None, uses get_default_root().
    """
    base = Path(root) if root else get_default_root()
    logs_dir = base / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def get_store_path(root: Optional[Union[Path, str]] = None) -> Path:
    """Path of the default credential store file (not created here)."""
    base = Path(root) if root else get_default_root()
    return base / DEFAULT_STORE_FILENAME
