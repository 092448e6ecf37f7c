"""Template engine: picks a catalog line, fills in its placeholders, runs it."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Any, Callable

from influxkit.templates.context import ResolutionContext
from influxkit.templates.store import load_template, merge_templates
from influxkit.templates.types import (
    AmbiguousSelection,
    Binding,
    Invocation,
    MergedTemplate,
    Resolution,
    SelectionAborted,
    TemplateError,
)

logger = logging.getLogger(__name__)

BUILTIN_TEMPLATE = Path(__file__).with_name("builtin.influxq")


def hint_pattern(hint: str) -> str:
    """Glob matching any line that contains the hint's characters in order.

    A wildcard follows every character: "abc" becomes "*a*b*c*". Glob
    metacharacters in the hint match literally.
    """
    parts = ["*"]
    for ch in hint.lower():
        parts.append(f"[{ch}]" if ch in "*?[" else ch)
        parts.append("*")
    return "".join(parts)


class TemplateEngine:
    """Resolves parameterized queries from the built-in and user templates."""

    def __init__(
        self,
        client: Any = None,
        selector: Any = None,
        prompt: Callable[[str], str] | None = None,
        database: str = "",
        user_template: Path | str | None = None,
        builtin_template: Path | str = BUILTIN_TEMPLATE,
    ) -> None:
        self.client = client
        self.selector = selector
        self.prompt = prompt
        self.database = database
        self.user_template = Path(user_template) if user_template else None
        self.builtin_template = Path(builtin_template)

    # ---- Public API ----

    def load(self) -> MergedTemplate:
        """Parse the built-in template, then the user template if any."""
        documents = [load_template(self.builtin_template)]
        if self.user_template is not None:
            documents.append(load_template(self.user_template))
        return merge_templates(documents)

    def invoke(self, hint: str | None = None, dry_run: bool = False) -> Invocation:
        """Load templates, resolve one query and run it.

        The returned Invocation is aborted (query None) when the user cancelled
        or the hint matched nothing; the executor is not called in that case.
        """
        resolution = self.resolve(self.load(), hint)
        if resolution.aborted:
            return Invocation(line=resolution.line)
        if dry_run:
            return Invocation(query=resolution.query, line=resolution.line)
        if self.client is None:
            raise TemplateError("No query executor configured")

        logger.info("Running %s", resolution.query)
        series = self.client.query_series(resolution.query, db=self.database or None)
        return Invocation(query=resolution.query, line=resolution.line, series=series)

    def resolve(self, template: MergedTemplate, hint: str | None = None) -> Resolution:
        line = self.select_line(template.catalog, hint)
        if line is None:
            return Resolution()

        bindings = {"DB": Binding(name="DB", value=self.database)}
        bindings.update(template.bindings)
        context = ResolutionContext(
            bindings,
            client=self.client,
            selector=self.selector,
            prompt=self.prompt,
            database=self.database,
        )
        try:
            query = context.interpolate(line)
        except SelectionAborted as e:
            logger.debug("Aborted at prompt %r", str(e))
            return Resolution(line=line)

        logger.debug("Resolved %r to %r", line, query)
        return Resolution(query=query, line=line)

    # ---- Line selection ----

    @staticmethod
    def match_lines(catalog: list[str], hint: str) -> list[str]:
        pattern = hint_pattern(hint)
        return [line for line in catalog if fnmatch.fnmatchcase(line.lower(), pattern)]

    def select_line(self, catalog: list[str], hint: str | None = None) -> str | None:
        """Pick one catalog line by hint, or interactively when there is no hint.

        Returns None when nothing was picked. Raises AmbiguousSelection when the
        hint matches more than one line.
        """
        if hint:
            matches = self.match_lines(catalog, hint)
            if len(matches) > 1:
                raise AmbiguousSelection(hint, matches)
            return matches[0] if matches else None

        if self.selector is None:
            raise TemplateError("No selector configured")
        picked = self.selector.select(catalog, prompt=self.database.upper())
        return picked[0] if picked else None
