from __future__ import annotations

import sys
import time
import traceback
from dataclasses import dataclass
from typing import TextIO


@dataclass
class ErrorEntry:
    context: str
    message: str
    trace: str | None = None
    count: int = 1
    last_seen: float = 0.0

    def summary_line(self) -> str:
        line = f"{self.context}: {self.message}"
        return line if self.count == 1 else f"{line} (x{self.count})"


class ErrorLog:
    """
    Recent relay and client failures, newest last, each one echoed as `[ERROR] context: message`.

    A failure repeated back to back (same context and message) bumps the count of the last entry
    instead of adding a new one; a bad client can send the same broken line every tick.
    """

    def __init__(self, *, max_items: int = 30, stream: TextIO | None = None) -> None:
        self._max_items = max(1, int(max_items))
        self._stream = stream
        self._entries: list[ErrorEntry] = []

    def entries(self) -> list[ErrorEntry]:
        return list(self._entries)

    def latest(self) -> ErrorEntry | None:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def log_message(self, *, context: str, message: str) -> ErrorEntry:
        entry = self._record(str(context or "unknown"), str(message or "").strip() or "Unknown error", None)
        self._echo(f"[ERROR] {entry.context}: {entry.message}")
        return entry

    def log_exception(self, *, context: str, exc: BaseException) -> ErrorEntry:
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        entry = self._record(str(context or "unknown"), f"{type(exc).__name__}: {exc}", trace)
        # Only the first occurrence carries a traceback to the console.
        if entry.count == 1:
            self._echo(f"[ERROR] {entry.context}: {entry.message}\n{trace.rstrip()}")
        else:
            self._echo(f"[ERROR] {entry.summary_line()}")
        return entry

    def _record(self, context: str, message: str, trace: str | None) -> ErrorEntry:
        now = time.time()
        last = self.latest()
        if last is not None and last.context == context and last.message == message:
            last.count += 1
            last.last_seen = now
            return last
        entry = ErrorEntry(context=context, message=message, trace=trace, last_seen=now)
        self._entries.append(entry)
        del self._entries[: -self._max_items]
        return entry

    def _echo(self, text: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        try:
            print(text, file=stream, flush=True)
        except (OSError, ValueError):
            # Closed or broken stderr must not turn a logged failure into a new one.
            pass
