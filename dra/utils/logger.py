"""
Centralized logging configuration for DRA.

All records go under the "dra" logger tree, one child per subsystem
(round, resolution, channel, harness, ...). Console output is colored
and written to stderr so command JSON on stdout stays clean; a plain
log file can be added with DRA_LOG_TO_FILE.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import colorlog
from dotenv import load_dotenv

ROOT_LOGGER = "dra"
LOG_FILE = "dra.log"

CONSOLE_FORMAT = "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_level(default: int = logging.INFO) -> int:
    raw = os.environ.get("DRA_LOG_LEVEL")
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


def _console_handler(level: int) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(colorlog.ColoredFormatter(
        CONSOLE_FORMAT,
        datefmt=DATE_FORMAT,
        log_colors=LOG_COLORS,
        stream=sys.stderr,
    ))
    return handler


def _file_handler(log_dir: Path, level: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / LOG_FILE)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


class DRALogger:
    """Process-wide logging setup for DRA components"""

    _initialized = False
    _log_dir: Optional[Path] = None

    @classmethod
    def setup(
        cls,
        level: Optional[int] = None,
        log_dir: Optional[str] = None,
        log_to_file: Optional[bool] = None,
    ):
        """
        Attach handlers to the "dra" logger once per process.

        Arguments left as None come from DRA_LOG_LEVEL, DRA_LOG_DIR and
        DRA_LOG_TO_FILE (a .env file is honored).

        Args:
            level: Logging level for every handler
            log_dir: Directory for dra.log (default ./logs)
            log_to_file: Also write to dra.log
        """
        if cls._initialized:
            return

        load_dotenv()
        if level is None:
            level = _env_level()
        if log_to_file is None:
            log_to_file = _env_flag("DRA_LOG_TO_FILE", False)

        root = logging.getLogger(ROOT_LOGGER)
        root.setLevel(level)
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

        root.addHandler(_console_handler(level))
        if log_to_file:
            cls._log_dir = Path(log_dir or os.environ.get("DRA_LOG_DIR") or "logs")
            root.addHandler(_file_handler(cls._log_dir, level))

        cls._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Allow the next setup() call to reconfigure handlers."""
        cls._initialized = False

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Subsystem logger, e.g. get_logger("round") -> "dra.round".
        """
        if not cls._initialized:
            cls.setup()
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific subsystem"""
    return DRALogger.get_logger(name)


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: Optional[bool] = None,
):
    """(Re)configure logging, replacing any existing handlers"""
    DRALogger.reset()
    DRALogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file)


__all__ = ["DRALogger", "get_logger", "setup_logging"]
