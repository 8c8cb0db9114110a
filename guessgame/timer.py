"""
Elapsed-time ticker for one PLAYING session.

Every `interval` seconds the ticker adds `increment` to the elapsed time.
Ticks are counted as an integer and converted on read, so 300 ticks of 0.1
read back as 30.0 and not 29.999999999999996.

One daemon thread per run waits on a stop Event between ticks; cancel()
sets the Event and is safe to call any number of times.
"""

import threading
from typing import Optional


class ElapsedTimer:
    def __init__(self, interval: float = 0.1, increment: float = 0.1, autostart_thread: bool = True):
        self.interval = interval
        self.increment = increment
        # tests drive tick() by hand with autostart_thread=False
        self._autostart_thread = autostart_thread
        self._ticks = 0
        self._running = False
        self._stop: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def elapsed(self) -> float:
        with self._lock:
            return round(self._ticks * self.increment, 2)

    def start(self) -> None:
        """Reset to zero and start ticking. A running ticker is restarted."""
        self.cancel()
        with self._lock:
            self._ticks = 0
            self._running = True
            if self._autostart_thread:
                # each run gets its own Event so an old thread can never tick a new run
                stop = threading.Event()
                self._stop = stop
                self._thread = threading.Thread(target=self._run, args=(stop,), daemon=True)
                self._thread.start()

    def tick(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._ticks += 1

    def cancel(self) -> bool:
        """Stop ticking and keep the elapsed time. Returns True if it was running."""
        with self._lock:
            was_running = self._running
            self._running = False
            if self._stop is not None:
                self._stop.set()
            self._stop = None
            self._thread = None
        return was_running

    def _run(self, stop: threading.Event) -> None:
        # wait() returns True once the Event is set
        while not stop.wait(self.interval):
            with self._lock:
                if stop.is_set():
                    return
                self._ticks += 1
