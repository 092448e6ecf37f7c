"""Parser for the template definitions mini-language.

A definitions section is a sequence of bindings, one per statement::

    LIMIT = 100
    SELECT_MEASUREMENT = select_measurement()
    SELECT_WINDOW = select(["1h", "1d", "7d"], "Window", edit=true)

A value is a literal (string, number, boolean, none, list) or a call to one of
the built-in primitives. Calls are not evaluated here; they are kept as
:class:`Call` nodes and run when a placeholder referencing them is resolved.
"""

from __future__ import annotations

from typing import Any

import ply.yacc as yacc

from influxkit.templates.lexer import DefinitionLexer
from influxkit.templates.types import Binding, Call


class DefinitionParser:
    """Parser for template definitions."""

    tokens = DefinitionLexer.tokens

    def __init__(self) -> None:
        self._lexer = DefinitionLexer()
        self._parser: yacc.LRParser | None = None

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self._lexer.build(debug=False, errorlog=yacc.NullLogger())
        kwargs.setdefault("debug", False)
        kwargs.setdefault("write_tables", False)
        kwargs.setdefault("errorlog", yacc.NullLogger())
        self._parser = yacc.yacc(module=self, **kwargs)

    def parse(self, text: str) -> list[Binding]:
        """Parse a definitions section into bindings, in source order."""
        if self._parser is None:
            self.build()
        self._lexer.lexer.lineno = 1
        bindings = self._parser.parse(text, lexer=self._lexer.lexer)
        return bindings or []

    # ---- Grammar rules ----

    def p_definitions(self, p: yacc.YaccProduction) -> None:
        """definitions : binding_list"""
        p[0] = p[1]

    def p_binding_list_empty(self, p: yacc.YaccProduction) -> None:
        """binding_list : """
        p[0] = []

    def p_binding_list_multi(self, p: yacc.YaccProduction) -> None:
        """binding_list : binding_list binding"""
        p[0] = p[1] + [p[2]]

    def p_binding(self, p: yacc.YaccProduction) -> None:
        """binding : IDENTIFIER EQUALS value"""
        p[0] = Binding(name=p[1], value=p[3], lineno=p.lineno(1))

    # ---- Values ----

    def p_value_literal(self, p: yacc.YaccProduction) -> None:
        """value : STRING
                 | NUMBER"""
        p[0] = p[1]

    def p_value_true(self, p: yacc.YaccProduction) -> None:
        """value : TRUE"""
        p[0] = True

    def p_value_false(self, p: yacc.YaccProduction) -> None:
        """value : FALSE"""
        p[0] = False

    def p_value_none(self, p: yacc.YaccProduction) -> None:
        """value : NONE"""
        p[0] = None

    def p_value_list(self, p: yacc.YaccProduction) -> None:
        """value : LBRACKET RBRACKET
                 | LBRACKET value_list opt_comma RBRACKET"""
        p[0] = p[2] if len(p) == 5 else []

    def p_value_call(self, p: yacc.YaccProduction) -> None:
        """value : call"""
        p[0] = p[1]

    def p_value_list_single(self, p: yacc.YaccProduction) -> None:
        """value_list : value"""
        p[0] = [p[1]]

    def p_value_list_multi(self, p: yacc.YaccProduction) -> None:
        """value_list : value_list COMMA value"""
        p[0] = p[1] + [p[3]]

    # ---- Calls ----

    def p_call_empty(self, p: yacc.YaccProduction) -> None:
        """call : IDENTIFIER LPAREN RPAREN"""
        p[0] = Call(name=p[1], lineno=p.lineno(1))

    def p_call_args(self, p: yacc.YaccProduction) -> None:
        """call : IDENTIFIER LPAREN arg_list opt_comma RPAREN"""
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for key, value in p[3]:
            if key is None:
                if kwargs:
                    raise SyntaxError(
                        f"Positional argument after keyword argument in {p[1]}() "
                        f"(line {p.lineno(1)})"
                    )
                args.append(value)
            else:
                if key in kwargs:
                    raise SyntaxError(
                        f"Repeated keyword argument '{key}' in {p[1]}() (line {p.lineno(1)})"
                    )
                kwargs[key] = value
        p[0] = Call(name=p[1], args=args, kwargs=kwargs, lineno=p.lineno(1))

    def p_arg_list_single(self, p: yacc.YaccProduction) -> None:
        """arg_list : arg"""
        p[0] = [p[1]]

    def p_arg_list_multi(self, p: yacc.YaccProduction) -> None:
        """arg_list : arg_list COMMA arg"""
        p[0] = p[1] + [p[3]]

    def p_arg_positional(self, p: yacc.YaccProduction) -> None:
        """arg : value"""
        p[0] = (None, p[1])

    def p_arg_keyword(self, p: yacc.YaccProduction) -> None:
        """arg : IDENTIFIER EQUALS value"""
        p[0] = (p[1], p[3])

    # ---- Shared rules ----

    def p_opt_comma_yes(self, p: yacc.YaccProduction) -> None:
        """opt_comma : COMMA"""
        pass

    def p_opt_comma_no(self, p: yacc.YaccProduction) -> None:
        """opt_comma : """
        pass

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        raise SyntaxError("Unexpected end of input")


_parser: DefinitionParser | None = None


def evaluate_definitions(text: str) -> dict[str, Binding]:
    """Parse a definitions section into a name -> binding environment.

    A name bound more than once keeps its last binding.
    """
    global _parser
    if _parser is None:
        _parser = DefinitionParser()
        _parser.build()
    return {binding.name: binding for binding in _parser.parse(text)}
