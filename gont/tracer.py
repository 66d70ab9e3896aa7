"""Collect trace events and deliver them to files, channels and callbacks."""

from __future__ import annotations

import heapq
import io
import itertools
import logging
import os
import queue
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import IO, Any, BinaryIO, Callable, Optional

from gont import tracing
from gont.events import Event

EventCallback = Callable[[Event], None]

_logger = logging.getLogger("gont.tracer")
_MAX_AGE = timedelta(seconds=1)


def _sort_key(event: Event) -> datetime:
    ts = event.timestamp
    return ts if ts.tzinfo is not None else ts.astimezone()


class _EventQueue:
    """Thread-safe queue which hands out the oldest event first."""

    def __init__(self) -> None:
        self._heap: list[tuple[datetime, int, Event]] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._heap)

    def push(self, event: Event) -> None:
        with self._lock:
            heapq.heappush(self._heap, (_sort_key(event), next(self._counter), event))

    def pop(self) -> Optional[Event]:
        with self._lock:
            if not self._heap:
                return None
            return heapq.heappop(self._heap)[2]

    def pop_older_than(self, cutoff: datetime) -> Optional[Event]:
        with self._lock:
            if not self._heap or self._heap[0][0] > cutoff:
                return None
            return heapq.heappop(self._heap)[2]


class Tracer:
    """Receives trace events, orders them by time and passes them on.

    Events are held back for a second so that events arriving late from
    other processes are still delivered in order.
    """

    def __init__(self, *args: Any) -> None:
        self.files: list[IO] = []
        self.filenames: list[str] = []
        self.channels: list[queue.Queue] = []
        self.callbacks: list[EventCallback] = []

        self._files: list[IO] = []
        self._closables: list[IO] = []
        self._queue = _EventQueue()
        self._stop: Optional[threading.Event] = None
        self._worker: Optional[threading.Thread] = None
        self._readers: list[threading.Thread] = []

        for opt in args:
            opt.apply_tracer(self)

    def _start(self) -> None:
        files = list(self.files)
        closables: list[IO] = []
        try:
            for filename in self.filenames:
                handle = open(filename, "a", encoding="utf-8")
                files.append(handle)
                closables.append(handle)
        except OSError:
            for handle in closables:
                handle.close()
            raise

        self._files = files
        self._closables = closables
        self._stop = threading.Event()
        self._worker = threading.Thread(target=self._write_events, name="gont-tracer", daemon=True)
        self._worker.start()

    def start(self) -> None:
        """Start delivering events and receive tracepoints of this process."""
        if self._stop is None:
            self._start()
        tracing.start_with_callback(self._new_event)

    def flush(self) -> None:
        """Deliver all queued events right away."""
        while (event := self._queue.pop()) is not None:
            self._write_event(event)

    def close(self) -> None:
        """Stop the tracer, deliver pending events and close opened files."""
        if self._stop is None or self._stop.is_set():
            return

        self._stop.set()
        if self._worker is not None:
            self._worker.join()
        for reader in self._readers:
            reader.join(timeout=1.0)

        self.flush()

        for closable in self._closables:
            closable.close()

    def pipe(self) -> BinaryIO:
        """Return the writing end of a pipe from which CBOR events are read."""
        if self._stop is None:
            self._start()

        rd, wr = os.pipe()
        reader = threading.Thread(target=self._read_pipe, args=(rd,), name="gont-tracer-pipe", daemon=True)
        reader.start()
        self._readers.append(reader)
        return os.fdopen(wr, "wb")

    def __enter__(self) -> Tracer:
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _read_pipe(self, fd: int) -> None:
        with os.fdopen(fd, "rb") as stream:
            while True:
                try:
                    event = Event.read_from(stream)
                except EOFError:
                    break
                except (ValueError, KeyError, TypeError) as exc:
                    _logger.warning("Failed to read tracepoint from log: %s", exc)
                    continue
                self._new_event(event)

    def _new_event(self, event: Event) -> None:
        if self.channels or self.callbacks or self._files:
            self._queue.push(event)

    def _write_event(self, event: Event) -> None:
        for channel in self.channels:
            channel.put(event)

        for callback in self.callbacks:
            callback(event)

        if self._files:
            line = event.to_json() + "\n"
            for handle in self._files:
                if isinstance(handle, io.TextIOBase):
                    handle.write(line)
                else:
                    handle.write(line.encode())

    def _write_events(self) -> None:
        assert self._stop is not None
        while not self._stop.wait(1.0):
            cutoff = datetime.now().astimezone() - _MAX_AGE
            while (event := self._queue.pop_older_than(cutoff)) is not None:
                try:
                    self._write_event(event)
                except Exception:
                    _logger.exception("Failed to handle event. Stop tracing...")
                    return


@dataclass(frozen=True)
class File:
    """Write events as JSON lines to an open file."""

    file: IO

    def apply_tracer(self, tracer: Tracer) -> None:
        tracer.files.append(self.file)


@dataclass(frozen=True)
class Filename:
    """Append events as JSON lines to the named file."""

    name: str

    def apply_tracer(self, tracer: Tracer) -> None:
        tracer.filenames.append(self.name)


@dataclass(frozen=True)
class Channel:
    """Put events into a queue."""

    channel: queue.Queue

    def apply_tracer(self, tracer: Tracer) -> None:
        tracer.channels.append(self.channel)


@dataclass(frozen=True)
class Callback:
    """Call a function for each event."""

    callback: EventCallback

    def apply_tracer(self, tracer: Tracer) -> None:
        tracer.callbacks.append(self.callback)


def to_file(f: IO) -> File:
    return File(f)


def to_filename(fn: str) -> Filename:
    return Filename(fn)


def to_channel(ch: queue.Queue) -> Channel:
    return Channel(ch)