"""Resolution context: state for resolving a single catalog line."""

from __future__ import annotations

import inspect
import logging
import re
from typing import Any, Callable

from influxkit.templates.primitives import PRIMITIVES
from influxkit.templates.types import (
    Binding,
    Call,
    SelectionAborted,
    TemplateError,
    UnresolvedPlaceholder,
)

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)")


def to_text(value: Any, sep: str = ",") -> str:
    """Render an evaluated binding value for splicing into a query."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return sep.join(to_text(v, sep) for v in value)
    return str(value)


class ResolutionContext:
    """Bindings plus the state built up while one line is being resolved.

    ``values`` caches each placeholder's text once forced, so a placeholder
    that appears twice prompts only once. ``last`` holds the most recent
    choice per kind ("measurement", "tag", ...) so later selections can build
    on earlier ones. Both live only as long as the context.
    """

    def __init__(
        self,
        bindings: dict[str, Binding],
        client: Any = None,
        selector: Any = None,
        prompt: Callable[[str], str] | None = None,
        database: str = "",
    ) -> None:
        self.bindings = bindings
        self.client = client
        self.selector = selector
        self.prompt = prompt
        self.database = database
        self.values: dict[str, str] = {}
        self.last: dict[str, str] = {}
        self._resolving: list[str] = []

    @property
    def current_database(self) -> str:
        return self.last.get("database") or self.database

    # ---- Placeholder resolution ----

    def interpolate(self, text: str) -> str:
        """Replace every $NAME in text, forcing placeholders left to right."""
        for match in PLACEHOLDER.finditer(text):
            self.resolve_name(match.group(1))
        return PLACEHOLDER.sub(lambda m: self.values[m.group(1)], text)

    def resolve_name(self, name: str) -> str:
        if name in self.values:
            return self.values[name]
        binding = self.bindings.get(name)
        if binding is None:
            raise UnresolvedPlaceholder(name)
        if name in self._resolving:
            chain = " -> ".join(self._resolving + [name])
            raise TemplateError(f"Placeholder cycle: {chain}")

        self._resolving.append(name)
        try:
            if binding.is_interactive:
                logger.debug("Resolving interactive placeholder $%s", name)
            value = self.evaluate(binding.value)
        finally:
            self._resolving.pop()

        text = to_text(value)
        self.values[name] = text
        return text

    def evaluate(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.interpolate(value)
        if isinstance(value, list):
            return [self.evaluate(v) for v in value]
        if isinstance(value, Call):
            return self.call(value)
        return value

    def call(self, call: Call) -> Any:
        func = PRIMITIVES.get(call.name)
        if func is None:
            raise TemplateError(f"Unknown function {call.name}() (line {call.lineno})")
        args = [self.evaluate(a) for a in call.args]
        kwargs = {k: self.evaluate(v) for k, v in call.kwargs.items()}
        try:
            inspect.signature(func).bind(self, *args, **kwargs)
        except TypeError as e:
            raise TemplateError(f"Bad arguments to {call.name}() (line {call.lineno}): {e}") from e
        return func(self, *args, **kwargs)

    # ---- Collaborators ----

    def choose(
        self, candidates: list[str], prompt: str = "", edit: bool = False, multi: bool = False
    ) -> list[str]:
        """Run the selector. An empty result aborts the resolution."""
        if self.selector is None:
            raise TemplateError("No selector configured")
        picked = self.selector.select(candidates, prompt=prompt, edit=edit, multi=multi)
        if not picked:
            raise SelectionAborted(prompt)
        logger.debug("Selected %r for prompt %r", picked, prompt)
        return picked

    def ask(self, prompt: str) -> str:
        if self.prompt is None:
            raise TemplateError("No input prompt configured")
        return self.prompt(prompt)

    def run_query(self, query: str, db: str | None = None) -> list[Any]:
        if self.client is None:
            raise TemplateError("No query executor configured")
        database = db if db is not None else self.current_database
        logger.debug("Template query on %r: %s", database, query)
        return self.client.query_series(query, db=database or None)
