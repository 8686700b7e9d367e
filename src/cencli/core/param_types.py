"""Click parameter types for cencli commands."""

from __future__ import annotations

import datetime
import re
import uuid

import click

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(text: str) -> float:
    """Parse a duration string such as ``30s``, ``1m30s`` or ``500ms``.

    Parameters
    ----------
    text : str
        Duration with a unit on every component; ``0`` is the only bare number
        accepted

    Returns
    -------
    float
        Duration in seconds

    Raises
    ------
    ValueError
        If the string is not a valid duration
    """
    value = text.strip()
    if value in {"0", "-0", "+0"}:
        return 0.0
    sign = 1.0
    if value[:1] in {"-", "+"}:
        sign = -1.0 if value[0] == "-" else 1.0
        value = value[1:]
    if not value:
        msg = f"invalid duration {text!r}"
        raise ValueError(msg)

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(value):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(value):
        msg = f"invalid duration {text!r}: expected a number followed by a unit (ns, us, ms, s, m, h)"
        raise ValueError(msg)
    return sign * total


def format_duration(seconds: float) -> str:
    """Format seconds as a compact duration string (``1m30s``, ``500ms``)."""
    if seconds == 0:
        return "0s"
    if seconds < 1:
        return f"{round(seconds * 1000)}ms"
    whole = int(seconds)
    hours, rest = divmod(whole, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return "".join(parts)


class DurationType(click.ParamType):
    """Duration parameter (``30s``, ``2m``); converts to seconds."""

    name = "duration"

    def convert(self, value, param, ctx):
        if isinstance(value, (int, float)):
            return float(value)
        try:
            seconds = parse_duration(str(value))
        except ValueError as e:
            self.fail(str(e), param, ctx)
        if seconds < 0:
            self.fail(f"duration must not be negative: {value}", param, ctx)
        return seconds


class UUIDType(click.ParamType):
    """UUID parameter, normalized to its canonical string form."""

    name = "uuid"

    def __init__(self, label: str = "UUID") -> None:
        self.label = label

    def convert(self, value, param, ctx):
        if isinstance(value, uuid.UUID):
            return str(value)
        try:
            return str(uuid.UUID(str(value).strip()))
        except ValueError:
            self.fail(f"invalid {self.label}: {value!r}", param, ctx)


class TimestampType(click.ParamType):
    """RFC 3339 timestamp; naive values are taken as UTC."""

    name = "timestamp"

    def convert(self, value, param, ctx):
        if isinstance(value, datetime.datetime):
            return value
        text = str(value).strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.datetime.fromisoformat(text)
        except ValueError:
            self.fail(f"invalid timestamp (expected RFC 3339): {value!r}", param, ctx)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=datetime.timezone.utc)
        return parsed


DURATION = DurationType()
TIMESTAMP = TimestampType()
ORG_ID = UUIDType("organization ID")
COLLECTION_ID = UUIDType("collection ID")
