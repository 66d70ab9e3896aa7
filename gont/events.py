"""Trace events and debugger breakpoints with their JSON and CBOR encodings."""

from __future__ import annotations

import enum
import json
import pprint
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, BinaryIO, TextIO

import cbor2

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


class Level(enum.IntEnum):
    """Log level of an event; zero means no level."""

    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    DPANIC = 5
    PANIC = 6
    FATAL = 7

    def __str__(self) -> str:
        return self.name.lower()


@dataclass
class Variable:
    """A variable as seen by the debugger."""

    name: str = ""
    value: str = ""
    type: str = ""
    children: list[Variable] = field(default_factory=list)


@dataclass
class Stackframe:
    """One frame of a stack trace."""

    function: str = ""
    file: str = ""
    line: int = 0
    arguments: list[Variable] = field(default_factory=list)


@dataclass
class Breakpoint:
    """State of a debugger breakpoint when it was hit."""

    id: int = 0
    name: str = ""
    total_hit_count: int = 0
    hit_count: dict[str, int] = field(default_factory=dict)
    variables: list[Variable] = field(default_factory=list)
    arguments: list[Variable] = field(default_factory=list)
    locals: list[Variable] = field(default_factory=list)
    stacktrace: list[Stackframe] = field(default_factory=list)

    def variable(self, name: str) -> str:
        """Return the value of the named evaluated expression, or ''."""
        return _lookup(self.variables, name)

    def argument(self, name: str) -> str:
        """Return the value of the named function argument, or ''."""
        return _lookup(self.arguments, name)

    def local(self, name: str) -> str:
        """Return the value of the named local variable, or ''."""
        return _lookup(self.locals, name)

    def fprint(self, stream: TextIO, indent: str) -> None:
        """Write a human readable description to ``stream``."""
        if self.name:
            stream.write(f"{indent}Breakpoint: {self.name} ({self.id})\n")
        else:
            stream.write(f"{indent}Breakpoint: {self.id}\n")
        stream.write(f"{indent}Hit count:  {self.total_hit_count}\n")

        _fprint_variables(stream, indent, "Arguments", self.arguments)
        _fprint_variables(stream, indent, "Locals", self.locals)
        _fprint_variables(stream, indent, "Variables", self.variables)
        _fprint_stacktrace(stream, self.stacktrace)


def _lookup(variables: list[Variable], name: str) -> str:
    return next((v.value for v in variables if v.name == name), "")


def _singleline(var: Variable) -> str:
    if not var.children:
        return var.value
    inner = ", ".join(f"{c.name}: {_singleline(c)}" for c in var.children)
    return f"{var.type}{{{inner}}}"


def _multiline(var: Variable, indent: str) -> str:
    if not var.children:
        return var.value
    inner = indent + "    "
    body = "".join(f"{inner}{c.name}: {_multiline(c, inner)},\n" for c in var.children)
    return f"{var.type} {{\n{body}{indent}}}"


def _fprint_variables(stream: TextIO, indent: str, title: str, variables: list[Variable]) -> None:
    if not variables:
        return
    stream.write(f"{indent}{title}:\n")
    for var in variables:
        stream.write(f"{indent}  {var.name}: {_multiline(var, '    ')}\n")


def _fprint_stacktrace(stream: TextIO, frames: list[Stackframe]) -> None:
    if not frames:
        return
    stream.write("  Stacktrace:\n")
    for frame in frames:
        args = ", ".join(_singleline(a) for a in frame.arguments)
        stream.write(f"    {frame.function}({args})\n")
        stream.write(f"      {frame.file}:{frame.line}\n")


def _variable_to_dict(var: Variable) -> dict[str, Any]:
    out: dict[str, Any] = {"name": var.name, "value": var.value}
    if var.type:
        out["type"] = var.type
    if var.children:
        out["children"] = [_variable_to_dict(c) for c in var.children]
    return out


def _variable_from_dict(data: dict[str, Any]) -> Variable:
    return Variable(
        name=data.get("name", ""),
        value=data.get("value", ""),
        type=data.get("type", ""),
        children=[_variable_from_dict(c) for c in data.get("children") or ()],
    )


def _variables_from(items: Any) -> list[Variable]:
    return [_variable_from_dict(v) for v in items or ()]


def _stackframe_to_dict(frame: Stackframe) -> dict[str, Any]:
    out: dict[str, Any] = {"function": frame.function, "file": frame.file, "line": frame.line}
    if frame.arguments:
        out["arguments"] = [_variable_to_dict(a) for a in frame.arguments]
    return out


def _stackframe_from_dict(data: dict[str, Any]) -> Stackframe:
    return Stackframe(
        function=data.get("function", ""),
        file=data.get("file", ""),
        line=int(data.get("line", 0)),
        arguments=_variables_from(data.get("arguments")),
    )


def _breakpoint_to_dict(bp: Breakpoint) -> dict[str, Any]:
    out: dict[str, Any] = {"id": bp.id}
    optional = (
        ("name", bp.name),
        ("total_hit_count", bp.total_hit_count),
        ("hit_count", dict(bp.hit_count)),
        ("vars", [_variable_to_dict(v) for v in bp.variables]),
        ("args", [_variable_to_dict(v) for v in bp.arguments]),
        ("locals", [_variable_to_dict(v) for v in bp.locals]),
        ("stack", [_stackframe_to_dict(s) for s in bp.stacktrace]),
    )
    out.update((key, value) for key, value in optional if value)
    return out


def _breakpoint_from_dict(data: dict[str, Any]) -> Breakpoint:
    return Breakpoint(
        id=int(data.get("id", 0)),
        name=data.get("name", ""),
        total_hit_count=int(data.get("total_hit_count", 0)),
        hit_count={str(k): int(v) for k, v in (data.get("hit_count") or {}).items()},
        variables=_variables_from(data.get("vars")),
        arguments=_variables_from(data.get("args")),
        locals=_variables_from(data.get("locals")),
        stacktrace=[_stackframe_from_dict(s) for s in data.get("stack") or ()],
    )


def _parse_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.astimezone()
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, timezone.utc).astimezone()
    if isinstance(value, str):
        text = _EXCESS_FRACTION.sub(r"\1", value.replace("Z", "+00:00"))
        return datetime.fromisoformat(text)
    raise ValueError(f"invalid event time: {value!r}")


@dataclass
class Event:
    """A tracing event emitted by a tracepoint, a log record or a breakpoint."""

    timestamp: datetime = _ZERO_TIME
    type: str = ""
    level: int = 0
    message: str = ""
    source: str = ""
    pid: int = 0
    function: str = ""
    file: str = ""
    line: int = 0
    breakpoint: Breakpoint | None = None
    data: Any = None

    def _fields(self, time_value: Any) -> dict[str, Any]:
        out: dict[str, Any] = {"time": time_value, "type": self.type}
        optional = (
            ("lvl", self.level),
            ("msg", self.message),
            ("src", self.source),
            ("pid", self.pid),
            ("func", self.function),
            ("file", self.file),
            ("line", self.line),
        )
        out.update((key, value) for key, value in optional if value)
        if self.breakpoint is not None:
            out["breakpoint"] = _breakpoint_to_dict(self.breakpoint)
        if self.data is not None:
            out["data"] = self.data
        return out

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation as a dictionary; empty fields are left out."""
        return self._fields(self.timestamp.isoformat())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        """Build an event from its JSON or CBOR dictionary."""
        if not isinstance(data, dict):
            raise ValueError(f"event must be a mapping, got {type(data).__name__}")
        bp = data.get("breakpoint")
        return cls(
            timestamp=_parse_time(data["time"]) if "time" in data else _ZERO_TIME,
            type=data.get("type", ""),
            level=int(data.get("lvl", 0)),
            message=data.get("msg", ""),
            source=data.get("src", ""),
            pid=int(data.get("pid", 0)),
            function=data.get("func", ""),
            file=data.get("file", ""),
            line=int(data.get("line", 0)),
            breakpoint=_breakpoint_from_dict(bp) if bp is not None else None,
            data=data.get("data"),
        )

    def to_json(self) -> str:
        """Encode the event as a JSON document."""
        return json.dumps(self.to_dict(), default=str)

    def marshal(self) -> bytes:
        """Encode the event as CBOR, with the time in Unix seconds at microsecond precision."""
        return cbor2.dumps(self._fields(round(self.timestamp.timestamp(), 6)))

    @classmethod
    def unmarshal(cls, data: bytes) -> Event:
        """Decode an event from CBOR."""
        return cls.from_dict(cbor2.loads(data))

    def write_to(self, stream: BinaryIO) -> int:
        """Write the CBOR encoded event to ``stream``; return the byte count."""
        encoded = self.marshal()
        stream.write(encoded)
        return len(encoded)

    @classmethod
    def read_from(cls, stream: BinaryIO) -> Event:
        """Read one CBOR encoded event; raises EOFError at end of stream."""
        return cls.from_dict(cbor2.load(stream))

    def fprint(self, stream: TextIO) -> None:
        """Write a human readable description to ``stream``."""
        indent = "  "

        ts = self.timestamp.strftime("%H:%M:%S")
        fraction = f"{self.timestamp.microsecond:06d}".rstrip("0")
        if fraction:
            ts += "." + fraction
        marker = "-" * (76 - len(ts) - len(self.message))

        stream.write(f"{ts}: {self.message} {marker}\n")
        stream.write(f"{indent}Type:       {self.type}\n")

        if self.level > 0:
            try:
                level_name = str(Level(self.level))
            except ValueError:
                level_name = f"Level({self.level - 2})"
            stream.write(f"{indent}Level:      {level_name}\n")

        if self.pid > 0:
            stream.write(f"{indent}PID:        {self.pid}\n")

        if self.source:
            stream.write(f"{indent}Source:     {self.source}\n")

        if self.function:
            stream.write(f"{indent}Function:   {self.function}\n")

        if self.file:
            stream.write(f"{indent}File/Line:  {self.file}:{self.line}\n")

        if self.data is not None:
            stream.write(f"{indent}Data:       {pprint.pformat(self.data)}\n")

        if self.breakpoint is not None:
            self.breakpoint.fprint(stream, indent)