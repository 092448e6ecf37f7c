"""influxkit - query, write and template helper for InfluxDB."""

from influxkit.client import InfluxClient, InfluxError, QueryError, Series, WriteError
from influxkit.config import Settings
from influxkit.line_protocol import format_point
from influxkit.selector import FzfSelector, SelectorError
from influxkit.templates import (
    AmbiguousSelection,
    MalformedTemplate,
    TemplateEngine,
    TemplateError,
)
from influxkit.udp import UdpSender

__all__ = [
    # Templates
    "TemplateEngine",
    "TemplateError",
    "MalformedTemplate",
    "AmbiguousSelection",
    # Server access
    "InfluxClient",
    "InfluxError",
    "QueryError",
    "WriteError",
    "Series",
    "UdpSender",
    "format_point",
    # Interaction and settings
    "FzfSelector",
    "SelectorError",
    "Settings",
]

__version__ = "0.1.0"
