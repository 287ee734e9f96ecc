"""Bounded rolling buffer of device log lines with pausable display.

Lines keep arriving while the display is paused; only the refresh is gated.
"""

from __future__ import annotations

from collections import deque
from itertools import islice
from threading import RLock
from typing import Iterator, List, NamedTuple, Optional, Protocol, Tuple, runtime_checkable

__all__ = ["DEFAULT_CAPACITY", "LogCursor", "LogChanges", "LogSink", "IncrementalLogSink", "LogBuffer"]

DEFAULT_CAPACITY: int = 100_000

# (first, end) absolute line numbers: first is the oldest line held, end is
# one past the newest.
LogCursor = Tuple[int, int]


class LogChanges(NamedTuple):
    """What a sink must do to catch up with the buffer.

    With ``reset`` the sink replaces its content with ``added``; otherwise it
    drops ``evicted`` lines from its head and appends ``added``.
    """

    added: List[str]
    evicted: int
    reset: bool
    first: int
    end: int

    @property
    def has_content(self) -> bool:
        return self.end > self.first


class LogSink(Protocol):
    """Where the buffer renders to (a text area, a socket channel, ...)."""

    def show(self, text: str, has_content: bool) -> None:
        ...

    def scroll_to_end(self) -> None:
        ...


@runtime_checkable
class IncrementalLogSink(Protocol):
    """A sink that keeps its own copy of the lines and takes only changes."""

    def log_cursor(self) -> Optional[LogCursor]:
        ...

    def show_changes(self, changes: LogChanges) -> None:
        ...

    def scroll_to_end(self) -> None:
        ...


class LogBuffer:
    """FIFO of log lines capped at `capacity`; the oldest line is evicted first.

    Every stored line gets an absolute line number so incremental sinks can
    ask for just what they have not seen yet.

    Thread-safety:
        Mutation is serialized with an RLock so the single-writer assumption
        still holds if callers ever run on real threads instead of green ones.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, sink: LogSink | IncrementalLogSink | None = None):
        if capacity < 1:
            raise ValueError(f"Log capacity must be >= 1, got {capacity!r}")
        self.capacity = int(capacity)
        self.sink = sink
        self._lines: deque[str] = deque()
        self._end = 0
        self._paused = False
        self.lock = RLock()

    # ----------------- Ingestion -----------------
    def append(self, line: str) -> bool:
        """Add one line at the tail. Blank lines are ignored.

        Returns True if the line was stored.
        """
        if not line or not line.strip():
            return False
        with self.lock:
            self._lines.append(line)
            self._end += 1
            if len(self._lines) > self.capacity:
                self._lines.popleft()
        return True

    def extend(self, fragment: str) -> int:
        """Split a multi-line fragment on newlines and append each line.

        Returns the number of lines stored.
        """
        if not fragment:
            return 0
        stored = 0
        for line in fragment.split("\n"):
            if self.append(line.rstrip("\r")):
                stored += 1
        return stored

    def clear(self) -> None:
        """Drop every buffered line. Local display state only."""
        with self.lock:
            self._lines.clear()
        self.refresh(reset=True)

    # ----------------- Pause -----------------
    @property
    def paused(self) -> bool:
        return self._paused

    def set_paused(self, paused: bool) -> None:
        """Pause or resume display refresh.

        Resuming refreshes immediately so everything received while paused
        shows up; pausing leaves the last rendered content on screen.
        """
        paused = bool(paused)
        with self.lock:
            was_paused = self._paused
            self._paused = paused
        if was_paused and not paused:
            self.refresh(reset=True)

    # ----------------- Rendering -----------------
    @property
    def cursor(self) -> LogCursor:
        with self.lock:
            return self._end - len(self._lines), self._end

    def changes_since(self, cursor: Optional[LogCursor]) -> LogChanges:
        """Diff from a sink holding lines `cursor` to the current content.

        A None cursor yields a reset carrying every line.
        """
        with self.lock:
            first, end = self._end - len(self._lines), self._end
            if cursor is None:
                return LogChanges(list(self._lines), 0, True, first, end)
            seen_first, seen_end = cursor
            evicted = max(0, min(first, seen_end) - seen_first)
            fresh = max(0, end - max(seen_end, first))
            added = list(islice(reversed(self._lines), fresh))
            added.reverse()
            return LogChanges(added, evicted, False, first, end)

    def lines_between(self, first: int, end: int) -> List[str]:
        """Lines numbered [first, end) that are still held."""
        with self.lock:
            held_first = self._end - len(self._lines)
            start = max(first, held_first) - held_first
            stop = min(end, self._end) - held_first
            if stop <= start:
                return []
            return list(islice(self._lines, start, stop))

    def render_into(self, sink: LogSink | IncrementalLogSink, reset: bool = False) -> None:
        """Write the lines to `sink`, unless paused.

        Plain sinks get every line joined by newlines. Incremental sinks get
        only the change since their cursor, or everything when `reset` is set.
        """
        with self.lock:
            if self._paused:
                return
            if isinstance(sink, IncrementalLogSink):
                changes = self.changes_since(None if reset else sink.log_cursor())
            else:
                changes = None
                text = "\n".join(self._lines)
                has_content = bool(self._lines)
        if changes is not None:
            sink.show_changes(changes)
        else:
            sink.show(text, has_content)
        sink.scroll_to_end()

    def refresh(self, reset: bool = False) -> None:
        """Render into the attached sink, if any."""
        if self.sink is not None:
            self.render_into(self.sink, reset=reset)

    # ----------------- Introspection -----------------
    def lines(self) -> List[str]:
        with self.lock:
            return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self.lines())
