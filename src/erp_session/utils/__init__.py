# src/erp_session/utils/__init__.py

from .paths import get_default_root, get_logs_dir, get_store_path
from .resilient_io import read_json_file, safe_write_json

__all__ = [
    "get_default_root",
    "get_logs_dir",
    "get_store_path",
    "read_json_file",
    "safe_write_json",
]
