"""Built-in functions callable from template definitions.

Every primitive takes the resolution context as its first argument, followed
by the arguments written in the template. Interactive primitives raise
SelectionAborted when the user cancels, which aborts the whole resolution.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable

from influxkit.templates.types import SelectionAborted, TemplateError

logger = logging.getLogger(__name__)

PRIMITIVES: dict[str, Callable[..., Any]] = {}


def primitive(name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def register(func: Callable[..., Any]) -> Callable[..., Any]:
        PRIMITIVES[name] = func
        return func
    return register


def quote_identifier(name: str) -> str:
    """Double-quote an identifier for use in a query."""
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


# ---- Generic primitives ----


@primitive("select")
def select(
    ctx: Any,
    choices: Any,
    prompt: str = "",
    edit: bool = False,
    multi: bool = False,
    save: str | None = None,
    sep: str = ",",
) -> str:
    """Pick from choices. In edit mode typed text stands in when nothing is picked."""
    if isinstance(choices, str):
        choices = choices.splitlines()
    candidates = [str(c) for c in choices]
    if not candidates and not edit:
        logger.info("Nothing to select for %r", prompt)
        raise SelectionAborted(prompt)

    picked = ctx.choose(candidates, prompt=prompt, edit=edit, multi=multi)
    if edit:
        typed = picked[-1]
        picked = picked[:-1] or ([typed] if typed else [])
        if not picked:
            raise SelectionAborted(prompt)
    if not multi:
        picked = picked[:1]

    value = sep.join(picked)
    if save:
        ctx.last[save] = value
    return value


@primitive("input")
def input_(ctx: Any, prompt: str = "", default: Any = None, save: str | None = None) -> str:
    text = ctx.ask(prompt)
    if not text:
        if default is None:
            raise SelectionAborted(prompt)
        text = str(default)
    if save:
        ctx.last[save] = text
    return text


@primitive("query")
def query(ctx: Any, q: str, column: str | None = None, db: str | None = None) -> list[str]:
    """Run q and return the distinct values of one column across all series.

    The first column is used when none is named.
    """
    values: list[str] = []
    for series in ctx.run_query(q, db=db):
        if not series.columns:
            continue
        if column is None:
            index = 0
        elif column in series.columns:
            index = series.columns.index(column)
        else:
            raise TemplateError(f"Column {column!r} not in result of {q!r}")
        for row in series.values:
            value = "" if row[index] is None else str(row[index])
            if value not in values:
                values.append(value)
    return values


@primitive("last")
def last(ctx: Any, name: str, default: Any = None) -> str:
    if name in ctx.last:
        return ctx.last[name]
    if default is None:
        raise TemplateError(f"Nothing selected yet for {name!r}")
    return str(default)


@primitive("env")
def env(ctx: Any, name: str, default: str = "") -> str:
    return os.environ.get(name, default)


# ---- Schema selections ----


def _pick(ctx: Any, q: str, prompt: str, key: str, column: str | None = None, db: str | None = None) -> str:
    """Select from the first column of q, reusing a choice made earlier in this resolution."""
    if ctx.last.get(key):
        return ctx.last[key]
    return select(ctx, query(ctx, q, column=column, db=db), prompt, save=key)


@primitive("select_database")
def select_database(ctx: Any) -> str:
    return _pick(ctx, "show databases", "Database", "database", db="")


@primitive("select_measurement")
def select_measurement(ctx: Any) -> str:
    return _pick(ctx, "show measurements", "Measurement", "measurement")


@primitive("select_tag_key")
def select_tag_key(ctx: Any) -> str:
    measurement = select_measurement(ctx)
    return _pick(ctx, f"show tag keys from {quote_identifier(measurement)}", "Tag", "tag")


@primitive("select_tag_value")
def select_tag_value(ctx: Any) -> str:
    measurement = select_measurement(ctx)
    tag = select_tag_key(ctx)
    q = f"show tag values from {quote_identifier(measurement)} with key = {quote_identifier(tag)}"
    return _pick(ctx, q, tag, "tag_value", column="value")


@primitive("select_field_key")
def select_field_key(ctx: Any) -> str:
    measurement = select_measurement(ctx)
    return _pick(ctx, f"show field keys from {quote_identifier(measurement)}", "Field", "field")


@primitive("select_retention_policy")
def select_retention_policy(ctx: Any) -> str:
    database = ctx.current_database or select_database(ctx)
    q = f"show retention policies on {quote_identifier(database)}"
    return _pick(ctx, q, "Retention policy", "retention_policy", db="")


@primitive("select_user")
def select_user(ctx: Any) -> str:
    return _pick(ctx, "show users", "User", "user", db="")
