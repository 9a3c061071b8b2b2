# src/erp_session/logging_setup.py

import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

import colorlog

from .utils.paths import get_logs_dir

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_installed_handlers: List[logging.Handler] = []


class SessionDebugFilter(logging.Filter):
    """Let only DEBUG records from the session core through to the debug file."""

    def filter(self, record):
        return record.levelno == logging.DEBUG and record.name.startswith(
            "erp_session"
        )


def configure_logging(
    level: int = logging.INFO, log_root: Optional[Union[Path, str]] = None
) -> logging.Logger:
    """
    Configure console (colored) and optional file logging for the CLI.

    Args:
        level: Console log level.
        log_root: If given, write session.log (INFO+) and session_debug.log
                  (erp_session DEBUG only) under <log_root>/logs.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Reconfiguring replaces our own handlers instead of stacking them
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = colorlog.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        colorlog.ColoredFormatter("%(log_color)s%(message)s", log_colors=LOG_COLORS)
    )
    root_logger.addHandler(console_handler)
    _installed_handlers.append(console_handler)

    if log_root is not None:
        log_dir = get_logs_dir(log_root)

        info_file_handler = logging.FileHandler(log_dir / "session.log", encoding="utf-8")
        info_file_handler.setLevel(logging.INFO)
        info_file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root_logger.addHandler(info_file_handler)
        _installed_handlers.append(info_file_handler)

        debug_file_handler = logging.FileHandler(
            log_dir / "session_debug.log", encoding="utf-8"
        )
        debug_file_handler.setLevel(logging.DEBUG)
        debug_file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        debug_file_handler.addFilter(SessionDebugFilter())
        root_logger.addHandler(debug_file_handler)
        _installed_handlers.append(debug_file_handler)

    # Silence noisy transport loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logging.getLogger("erp_session")
