"""Template types: documents, bindings, calls, resolution results and errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

INTERACTIVE_PREFIXES = ("SELECT_", "INPUT_")


# ---- Definitions AST ----


@dataclass
class Call:
    """A deferred call to a built-in primitive, e.g. select(["a", "b"], "Pick")."""
    name: str
    args: list[Value] = field(default_factory=list)
    kwargs: dict[str, Value] = field(default_factory=dict)
    lineno: int = 0


Value = Union[str, int, float, bool, None, list, Call]


@dataclass
class Binding:
    """A placeholder name bound to a literal or a deferred call."""
    name: str
    value: Value
    lineno: int = 0

    @property
    def is_interactive(self) -> bool:
        return self.name.startswith(INTERACTIVE_PREFIXES)

    @property
    def is_deferred(self) -> bool:
        return isinstance(self.value, Call)


# ---- Documents ----


@dataclass
class TemplateDocument:
    """A parsed template file: raw definitions text plus cleaned catalog lines."""
    definitions: str
    catalog: list[str] = field(default_factory=list)
    source: str | None = None
    bindings: dict[str, Binding] = field(default_factory=dict)


@dataclass
class MergedTemplate:
    """Built-in and user documents combined for one resolution."""
    bindings: dict[str, Binding] = field(default_factory=dict)
    catalog: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)


# ---- Results ----


@dataclass
class Resolution:
    """Outcome of resolving one catalog line. query is None when aborted."""
    query: str | None = None
    line: str | None = None

    @property
    def aborted(self) -> bool:
        return self.query is None


@dataclass
class Invocation:
    """A resolved query together with what the executor returned for it."""
    query: str | None = None
    line: str | None = None
    series: list[Any] | None = None

    @property
    def aborted(self) -> bool:
        return self.query is None


# ---- Errors ----


class TemplateError(Exception):
    """Base class for template loading and resolution failures."""


class MalformedTemplate(TemplateError):
    """A template file is missing, unreadable, or not split into two sections."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class AmbiguousSelection(TemplateError):
    """A selection hint matched more than one catalog line."""

    def __init__(self, hint: str, matches: list[str]) -> None:
        super().__init__(f"Hint {hint!r} matches {len(matches)} lines")
        self.hint = hint
        self.matches = matches


class UnresolvedPlaceholder(TemplateError):
    """A $NAME reference with no binding."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No binding for placeholder ${name}")
        self.name = name


class SelectionAborted(Exception):
    """Raised by interactive primitives when the user cancels."""
