"""Thread-safe progress bar shown while files are processed."""

from __future__ import annotations

import sys
import threading

from tqdm import tqdm

_FORMAT = "[{elapsed}] |{bar:40}| {n}/{total} ({percentage:.0f}%)"
_FORMAT_ETA = "[{elapsed} - ETA: {remaining}] |{bar:40}| {n}/{total} ({percentage:.0f}%)"


class Progress:
    """A progress bar over a fixed number of tasks, safe to share between threads."""

    def __init__(self, length, eta):
        self._lock = threading.Lock()
        self._bar = tqdm(
            total=length,
            bar_format=_FORMAT_ETA if eta else _FORMAT,
            ascii=" >#",
            file=sys.stderr,
            leave=True,
        )
        self._stop = threading.Event()
        self._ticker: threading.Thread | None = None
        self._finished = False

    def inc(self, amount):
        """Advance the bar by ``amount`` tasks."""
        with self._lock:
            self._bar.update(amount)

    def start_tick(self, millis):
        """Redraw the bar every ``millis`` milliseconds until :meth:`finish`."""
        if self._ticker is not None:
            return
        interval = max(millis, 1) / 1000.0

        def tick():
            while not self._stop.wait(interval):
                with self._lock:
                    self._bar.refresh()

        self._ticker = threading.Thread(target=tick, daemon=True)
        self._ticker.start()

    def println(self, message):
        """Print a line above the bar without disturbing it."""
        with self._lock:
            tqdm.write(message, file=sys.stderr)

    def finish(self):
        """Stop redrawing and leave the bar where it is."""
        self._stop.set()
        if self._ticker is not None:
            self._ticker.join()
            self._ticker = None
        with self._lock:
            if not self._finished:
                self._bar.close()
                self._finished = True

    def total(self):
        """Number of tasks the bar was created for."""
        return self._bar.total

    def value(self):
        """Number of tasks completed so far."""
        with self._lock:
            return self._bar.n