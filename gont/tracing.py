"""Instrumentation: emit tracepoints and log records as trace events."""

from __future__ import annotations

import inspect
import logging
import os
import threading
from datetime import datetime
from typing import Any, BinaryIO, Callable, Optional

from gont.events import Event, Level

EventCallback = Callable[[Event], None]

_RESERVED_RECORD_KEYS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class _State:
    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.callback: Optional[EventCallback] = None
        self.writer: Optional[BinaryIO] = None


_state = _State()


def _enabled() -> bool:
    return _state.writer is not None or _state.callback is not None


def _dispatch(event: Event) -> None:
    callback = _state.callback
    if callback is not None:
        callback(event)
    with _state.lock:
        if _state.writer is not None:
            event.write_to(_state.writer)


def start(bufsize: int = 0) -> None:
    """Start writing events to the file named by GONT_TRACEFILE.

    The file must already exist. A positive ``bufsize`` buffers writes.
    """
    with _state.lock:
        if _state.writer is not None:
            raise RuntimeError("tracing already enabled")

        path = os.environ.get("GONT_TRACEFILE", "")
        if not path:
            raise RuntimeError("tracing not supported. Missing GONT_TRACEFILE environment variable")

        fd = os.open(path, os.O_WRONLY | os.O_APPEND)
        try:
            _state.writer = os.fdopen(fd, "wb", buffering=bufsize if bufsize > 0 else 0)
        except BaseException:
            os.close(fd)
            raise


def start_with_callback(cb: Optional[EventCallback]) -> None:
    """Pass every event to ``cb``; None removes the callback."""
    _state.callback = cb


def stop() -> None:
    """Flush and close the trace file."""
    with _state.lock:
        writer = _state.writer
        if writer is None:
            raise RuntimeError("tracing not running")
        _state.writer = None
        try:
            writer.flush()
        finally:
            writer.close()


def traced(cb: Callable[[], Any], bufsize: int = 0) -> Any:
    """Run ``cb`` with tracing to the trace file enabled and return its result."""
    start(bufsize)
    try:
        return cb()
    finally:
        stop()


def _trace(data: Any, msg: str) -> None:
    if not _enabled():
        return

    frame = inspect.currentframe()
    caller = frame.f_back.f_back if frame is not None and frame.f_back is not None else None
    function = file = ""
    line = 0
    if caller is not None:
        module = inspect.getmodule(caller)
        prefix = f"{module.__name__}." if module is not None else ""
        function = prefix + caller.f_code.co_name
        file = caller.f_code.co_filename
        line = caller.f_lineno
    del frame, caller

    _dispatch(
        Event(
            type="tracepoint",
            pid=os.getpid(),
            timestamp=datetime.now().astimezone(),
            message=msg.strip(),
            data=data,
            function=function,
            file=file,
            line=line,
        )
    )


def print_with_data(data: Any, msg: str) -> None:
    """Emit a tracepoint with a message and attached data."""
    _trace(data, msg)


def printf_with_data(data: Any, fmt: str, *args: Any) -> None:
    """Emit a tracepoint with a %-formatted message and attached data."""
    _trace(data, fmt % args if args else fmt)


def print_message(msg: str) -> None:
    """Emit a tracepoint with a message."""
    _trace(None, msg)


def printf(fmt: str, *args: Any) -> None:
    """Emit a tracepoint with a %-formatted message."""
    _trace(None, fmt % args if args else fmt)


def _level(levelno: int) -> Level:
    if levelno <= logging.DEBUG:
        return Level.DEBUG
    if levelno <= logging.INFO:
        return Level.INFO
    if levelno <= logging.WARNING:
        return Level.WARN
    if levelno <= logging.ERROR:
        return Level.ERROR
    return Level.FATAL


class TraceHandler(logging.Handler):
    """Logging handler that turns every record into a trace event.

    Extra attributes of a record and the handler's ``fields`` become the event data.
    """

    def __init__(self, fields: Optional[dict[str, Any]] = None, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.fields = dict(fields or {})

    def emit(self, record: logging.LogRecord) -> None:
        if not _enabled():
            return

        data = dict(self.fields)
        data.update((k, v) for k, v in vars(record).items() if k not in _RESERVED_RECORD_KEYS)

        event = Event(
            type="log",
            pid=os.getpid(),
            timestamp=datetime.fromtimestamp(record.created).astimezone(),
            message=record.getMessage().strip(),
            source=record.name,
            level=_level(record.levelno),
            function=record.funcName or "",
            line=record.lineno,
            file=record.pathname,
            data=data,
        )
        try:
            _dispatch(event)
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        with _state.lock:
            writer = _state.writer
            if writer is not None:
                writer.flush()
                os.fsync(writer.fileno())


def log_handler() -> TraceHandler:
    """Return a handler that emits a trace event for each log record."""
    return TraceHandler()