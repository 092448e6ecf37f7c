"""Line protocol formatting.

    measurement[,tag=value...] field=value[,field=value...] [timestamp]
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any

_MEASUREMENT_ESCAPES = str.maketrans({",": r"\,", " ": r"\ "})
_KEY_ESCAPES = str.maketrans({",": r"\,", "=": r"\=", " ": r"\ "})
_INTEGER = re.compile(r"^-?\d+i$")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def escape_measurement(name: str) -> str:
    return name.translate(_MEASUREMENT_ESCAPES)


def escape_key(key: str) -> str:
    """Escape a tag key, tag value or field key."""
    return key.translate(_KEY_ESCAPES)


def format_field_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def to_nanoseconds(timestamp: int | datetime) -> int:
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        delta = timestamp - _EPOCH
        return (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1_000
    return int(timestamp)


def format_point(
    measurement: str,
    fields: dict[str, Any],
    tags: dict[str, Any] | None = None,
    timestamp: int | datetime | None = None,
) -> str:
    """Format one point. Tags are written sorted by key; empty tag values are skipped."""
    if not measurement:
        raise ValueError("Measurement name is required")
    if not fields:
        raise ValueError(f"Point {measurement!r} has no fields")

    parts = [escape_measurement(measurement)]
    for key in sorted(tags or {}):
        value = str(tags[key])  # type: ignore[index]
        if value == "":
            continue
        parts.append(f"{escape_key(key)}={escape_key(value)}")
    line = ",".join(parts)

    field_set = ",".join(f"{escape_key(k)}={format_field_value(v)}" for k, v in fields.items())
    line = f"{line} {field_set}"

    if timestamp is not None:
        line = f"{line} {to_nanoseconds(timestamp)}"
    return line


def parse_field_value(text: str) -> Any:
    """Infer a field value from command-line text.

    "12i" is an integer, a finite number float() accepts is a float,
    "true"/"false" are booleans and everything else stays a string.
    """
    if _INTEGER.match(text):
        return int(text[:-1])
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        number = float(text)
    except ValueError:
        return text
    return number if math.isfinite(number) else text


def parse_assignment(text: str) -> tuple[str, str]:
    """Split "key=value" as given on the command line."""
    key, sep, value = text.partition("=")
    if not sep or not key:
        raise ValueError(f"Expected key=value, got {text!r}")
    return key, value
