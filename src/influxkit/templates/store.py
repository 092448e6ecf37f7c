"""Template store: reads template files and splits them into their two sections.

A template file looks like::

    SELECT_DB = select_database()
    ---
    show databases
    drop database "$SELECT_DB"    # trailing comments are stripped

Everything above the first ``---`` line is the definitions section, handed to
the definitions parser. Everything below is the catalog, one query per line.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from influxkit.templates.parser import evaluate_definitions
from influxkit.templates.types import MalformedTemplate, MergedTemplate, TemplateDocument

logger = logging.getLogger(__name__)

_DELIMITER = re.compile(r"^[ \t]*---[ \t]*\r?$", re.MULTILINE)
_TRAILING_COMMENT = re.compile(r"\s+#.*$")


def clean_catalog(lines: list[str]) -> list[str]:
    """Drop blank and comment lines, strip trailing comments from the rest."""
    cleaned = []
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        cleaned.append(_TRAILING_COMMENT.sub("", line.rstrip("\r")))
    return cleaned


def parse_template(text: str, source: str | None = None) -> TemplateDocument:
    """Split template text on its delimiter line.

    Raises MalformedTemplate when there is no ``---`` line.
    """
    match = _DELIMITER.search(text)
    if match is None:
        raise MalformedTemplate("missing '---' line between definitions and queries", source)

    definitions = text[: match.start()]
    if definitions.endswith("\n"):
        definitions = definitions[:-1]
    catalog_text = text[match.end():]
    if catalog_text.startswith("\n"):
        catalog_text = catalog_text[1:]

    return TemplateDocument(
        definitions=definitions,
        catalog=clean_catalog(catalog_text.splitlines()),
        source=source,
    )


def load_template(path: Path | str) -> TemplateDocument:
    """Read and parse a template file, including its definitions."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedTemplate(f"cannot read template: {e}", str(path)) from e

    document = parse_template(text, source=str(path))
    try:
        document.bindings = evaluate_definitions(document.definitions)
    except SyntaxError as e:
        raise MalformedTemplate(f"bad definitions: {e}", str(path)) from e

    logger.debug(
        "Loaded %s: %d bindings, %d queries",
        path, len(document.bindings), len(document.catalog),
    )
    return document


def merge_templates(documents: list[TemplateDocument]) -> MergedTemplate:
    """Combine documents in order. Later bindings replace earlier ones by name;
    catalog lines are appended."""
    merged = MergedTemplate()
    for document in documents:
        merged.bindings.update(document.bindings)
        merged.catalog.extend(document.catalog)
        if document.source:
            merged.sources.append(document.source)
    return merged
