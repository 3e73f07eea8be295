# scanner.py
from __future__ import annotations
import logging
import sys
import threading
import time
from typing import Callable, Iterator, TextIO

from config import SCAN_KEY_GAP_MS, SCAN_SETTLE_DELAY_MS
from models.scan_events import ScanCompleted, ScanState

logger = logging.getLogger(__name__)

TERMINATOR_KEYS = frozenset({"Enter", "Return", "\r", "\n"})
_EOT = "\x04"  # Ctrl+D in cbreak mode

Scheduler = Callable[[float, Callable[[], None]], None]


def _timer_schedule(delay_s: float, fn: Callable[[], None]) -> None:
    t = threading.Timer(delay_s, fn)
    t.daemon = True
    t.start()


def blocking_schedule(delay_s: float, fn: Callable[[], None]) -> None:
    """Run `fn` after `delay_s` on the calling thread."""
    time.sleep(delay_s)
    fn()


# ========== Scan session ==========

class ScanSession:
    """
    Turns a raw key event stream into barcode scans.

    A keyboard-wedge scanner types the code as a fast burst and finishes with
    Enter. Keystrokes further apart than `key_gap_ms` start a new burst, so
    slow human typing never accumulates into a barcode.
    """

    def __init__(
        self,
        on_scan: Callable[[ScanCompleted], None] | None = None,
        key_gap_ms: float = SCAN_KEY_GAP_MS,
        settle_delay_ms: float = SCAN_SETTLE_DELAY_MS,
        schedule: Scheduler | None = None,
    ) -> None:
        self.on_scan = on_scan
        self.key_gap_ms = key_gap_ms
        self.settle_delay_ms = settle_delay_ms
        self._schedule = schedule or _timer_schedule

        self.buffer: list[str] = []
        self.last_event_time: float | None = None
        self.state = ScanState.LISTENING
        self.scanned_barcode: str | None = None

    @property
    def active(self) -> bool:
        return self.state is ScanState.LISTENING

    @property
    def pending(self) -> str:
        return "".join(self.buffer)

    def reset(self) -> None:
        self.buffer.clear()
        self.scanned_barcode = None
        self.state = ScanState.LISTENING

    def stop(self) -> None:
        # Does not cancel a settle timer that is already running.
        self.state = ScanState.STOPPED

    def on_key_event(self, key: str, timestamp_ms: float) -> ScanCompleted | None:
        if not self.active:
            return None

        if self.last_event_time is None or timestamp_ms - self.last_event_time > self.key_gap_ms:
            if self.buffer:
                logger.debug("Key gap exceeded, dropping partial input %r", self.pending)
            self.buffer.clear()
        self.last_event_time = timestamp_ms

        if key in TERMINATOR_KEYS:
            if not self.buffer:
                return None
            event = ScanCompleted(self.pending, timestamp_ms)
            self.buffer.clear()
            self.scanned_barcode = event.barcode
            logger.info("Barcode scanned: %s", event.barcode)
            self._schedule(self.settle_delay_ms / 1000.0, lambda: self._deliver(event))
            return event

        if len(key) == 1 and key.isprintable():
            self.buffer.append(key)
        else:
            logger.debug("Ignoring key %r", key)
        return None

    def submit_manual(self, raw: str, timestamp_ms: float | None = None) -> ScanCompleted | None:
        """
        Typed-in fallback. Skips buffering and timing entirely; only checks
        that the trimmed value is not empty.
        """
        barcode = (raw or "").strip()
        if not barcode:
            return None
        if timestamp_ms is None:
            timestamp_ms = time.monotonic() * 1000.0
        event = ScanCompleted(barcode, timestamp_ms)
        self.scanned_barcode = barcode
        self._deliver(event)
        return event

    def _deliver(self, event: ScanCompleted) -> None:
        self.stop()
        if self.on_scan:
            self.on_scan(event)


# ========== Terminal input ==========

def listen_keystrokes(
    stream: TextIO | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> Iterator[tuple[str, float]]:
    """
    Yields (key, timestamp_ms) for every character read from `stream`.
    A tty is switched to cbreak mode so characters arrive without waiting for
    a newline. Newlines are reported as "Enter".
    """
    stream = stream or sys.stdin
    restore = _enter_cbreak(stream)
    try:
        while True:
            ch = stream.read(1)
            if not ch or ch == _EOT:
                return
            key = "Enter" if ch in ("\r", "\n") else ch
            yield key, clock() * 1000.0
    finally:
        if restore:
            restore()


def listen_manual(prompt: str = "Scan or type barcode: ") -> Iterator[str]:
    """
    Generator of manually entered barcodes (one per line).
    """
    while True:
        try:
            raw = input(prompt)
        except EOFError:
            return
        barcode = raw.strip()
        if not barcode:
            print("Empty barcode, try again.")
            continue
        yield barcode


def _enter_cbreak(stream: TextIO) -> Callable[[], None] | None:
    if not hasattr(stream, "isatty") or not stream.isatty():
        return None
    try:
        import termios
        import tty
    except ImportError:  # not POSIX
        return None

    fd = stream.fileno()
    saved = termios.tcgetattr(fd)
    tty.setcbreak(fd)

    def restore() -> None:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)

    return restore
