"""Query templates: placeholder definitions, a query catalog and the engine that resolves them."""

from influxkit.templates.engine import BUILTIN_TEMPLATE, TemplateEngine
from influxkit.templates.parser import DefinitionParser, evaluate_definitions
from influxkit.templates.store import load_template, merge_templates, parse_template
from influxkit.templates.types import (
    AmbiguousSelection,
    Binding,
    Call,
    Invocation,
    MalformedTemplate,
    MergedTemplate,
    Resolution,
    TemplateDocument,
    TemplateError,
    UnresolvedPlaceholder,
)

__all__ = [
    "BUILTIN_TEMPLATE",
    "TemplateEngine",
    "DefinitionParser",
    "evaluate_definitions",
    "load_template",
    "merge_templates",
    "parse_template",
    "AmbiguousSelection",
    "Binding",
    "Call",
    "Invocation",
    "MalformedTemplate",
    "MergedTemplate",
    "Resolution",
    "TemplateDocument",
    "TemplateError",
    "UnresolvedPlaceholder",
]
