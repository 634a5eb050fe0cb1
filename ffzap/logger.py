"""Per-run log file, optionally echoed above the progress bar."""

from __future__ import annotations

import os
import sys
import threading
from datetime import datetime
from pathlib import Path

import platformdirs

from ffzap.progress import Progress

APP_NAME = "ffzap"

_BRIGHT_BLUE = "\x1b[94m"
_BRIGHT_RED = "\x1b[91m"
_RESET = "\x1b[0m"


def default_log_dir() -> Path:
    """Directory where log files go on this platform."""
    if sys.platform.startswith("win"):
        return platformdirs.user_data_path(roaming=False) / APP_NAME / "logs"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Logs" / APP_NAME
    if sys.platform.startswith("linux"):
        return platformdirs.user_cache_path() / APP_NAME / "logs"
    return Path.home() / APP_NAME / "logs"


def _should_colorize() -> bool:
    force = os.environ.get("CLICOLOR_FORCE")
    if force is not None and force != "0":
        return True
    if "NO_COLOR" in os.environ:
        return False
    if os.environ.get("CLICOLOR") == "0":
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def _paint(text: str, code: str) -> str:
    return f"{code}{text}{_RESET}" if _should_colorize() else text


class Logger:
    """Writes timestamped-run logs to a file, safe to share between threads."""

    def __init__(self, progress: Progress, log_dir=None):
        self._progress = progress
        directory = Path(log_dir) if log_dir is not None else default_log_dir()
        directory.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%d-%m-%YT%H-%M-%S")
        self._log_path = (directory / stamp).with_suffix(".log")
        self._lock = threading.Lock()
        self._file = open(self._log_path, "w", encoding="utf-8")

    def log_info(self, line, thread, print_line):
        """Record an informational line; echo it if ``print_line``."""
        text = f"[INFO in THREAD {thread}] -- {line}\n"
        self._write(_paint(text, _BRIGHT_BLUE))
        if print_line:
            self._progress.println(text)

    def log_error(self, line, thread, print_line):
        """Record an error line; echo it if ``print_line``."""
        text = _paint(f"[ERROR in THREAD {thread} -- {line}\n", _BRIGHT_RED)
        self._write(text)
        if print_line:
            self._progress.println(text)

    def append_failed_paths(self, paths):
        """Append the list of paths that could not be processed, if any."""
        paths = list(paths)
        if not paths:
            return
        header = "\nThe following files were not processed due to the errors above:"
        self._write(header + "\n" + "\n".join(paths))

    @property
    def log_path(self) -> Path:
        """Path of the log file for this run."""
        return self._log_path

    def close(self):
        """Close the log file."""
        with self._lock:
            if not self._file.closed:
                self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def _write(self, text: str) -> None:
        with self._lock:
            self._file.write(text)
            self._file.flush()