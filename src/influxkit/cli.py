"""Command-line front end: queries, writes, UDP packets and query templates."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx

from influxkit.client import InfluxClient, InfluxError, Series
from influxkit.config import Settings
from influxkit.line_protocol import format_point, parse_assignment, parse_field_value
from influxkit.selector import FzfSelector, SelectorError, read_input
from influxkit.templates import AmbiguousSelection, TemplateEngine, TemplateError
from influxkit.udp import UdpSender


def format_value(value: Any, max_width: int = 40) -> str:
    """Format a value for display."""
    if value is None:
        return ""
    elif isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, float):
        return f"{value:.6g}"
    elif isinstance(value, (list, dict)):
        s = json.dumps(value)
    else:
        s = str(value)
    if len(s) > max_width:
        return s[:max_width - 3] + "..."
    return s


def print_series(series_list: list[Series]) -> None:
    """Print each series as a table, with its name and tags as a heading."""
    if not series_list:
        print("(no results)")
        return

    for index, series in enumerate(series_list):
        if index:
            print()
        heading = series.name or ""
        if series.tags:
            tags = ", ".join(f"{k}={v}" for k, v in sorted(series.tags.items()))
            heading = f"{heading} ({tags})" if heading else tags
        if heading:
            print(heading)

        col_widths = {col: len(col) for col in series.columns}
        for row in series.values:
            for col, value in zip(series.columns, row):
                col_widths[col] = max(col_widths[col], len(format_value(value)))

        header = " | ".join(col.ljust(col_widths[col]) for col in series.columns)
        print(header)
        print("-" * len(header))
        for row in series.values:
            print(" | ".join(
                format_value(value).ljust(col_widths[col])
                for col, value in zip(series.columns, row)
            ))
        print(f"\n({len(series.values)} row{'s' if len(series.values) != 1 else ''})")


def _read_lines(lines: list[str], file: Path | None) -> list[str]:
    """Lines from arguments, else from file ('-' for stdin), else stdin."""
    if lines:
        return lines
    if file is not None and str(file) != "-":
        text = file.read_text(encoding="utf-8")
    else:
        text = sys.stdin.read()
    return [line for line in text.splitlines() if line.strip() and not line.lstrip().startswith("#")]


def _client(settings: Settings) -> InfluxClient:
    return InfluxClient.from_settings(settings)


# ---- Commands ----


def cmd_query(args: argparse.Namespace, settings: Settings) -> int:
    with _client(settings) as client:
        if args.json:
            print(json.dumps(client.query(args.query, epoch=args.epoch), indent=2))
        else:
            print_series(client.query_series(args.query, epoch=args.epoch))
    return 0


def cmd_write(args: argparse.Namespace, settings: Settings) -> int:
    lines = _read_lines(args.lines, args.file)
    if not lines:
        print("Nothing to write.", file=sys.stderr)
        return 1
    with _client(settings) as client:
        client.write(lines, precision=args.precision, retention_policy=args.rp)
    if args.verbose:
        print(f"Wrote {len(lines)} line{'s' if len(lines) != 1 else ''}")
    return 0


def cmd_point(args: argparse.Namespace, settings: Settings) -> int:
    fields = {}
    for item in args.field:
        key, value = parse_assignment(item)
        fields[key] = parse_field_value(value)
    tags = dict(parse_assignment(item) for item in args.tag)
    line = format_point(args.measurement, fields, tags=tags, timestamp=args.time)

    if args.print:
        print(line)
    elif args.udp:
        UdpSender(settings.udp_host, settings.udp_port).send([line])
    else:
        with _client(settings) as client:
            client.write([line])
    return 0


def cmd_udp(args: argparse.Namespace, settings: Settings) -> int:
    lines = _read_lines(args.lines, args.file)
    count = UdpSender(settings.udp_host, settings.udp_port).send(lines)
    if args.verbose:
        print(f"Sent {count} packet{'s' if count != 1 else ''} to {settings.udp_host}:{settings.udp_port}")
    return 0


def cmd_ping(args: argparse.Namespace, settings: Settings) -> int:
    with _client(settings) as client:
        version = client.ping()
    print(f"{settings.url} is up{f' (version {version})' if version else ''}")
    return 0


def cmd_template(args: argparse.Namespace, settings: Settings) -> int:
    hint = " ".join(args.hint) if args.hint else None
    with _client(settings) as client:
        engine = TemplateEngine(
            client=client,
            selector=FzfSelector(settings.fzf),
            prompt=read_input,
            database=settings.database,
            user_template=args.template or settings.template_path,
        )

        if args.list:
            for line in engine.load().catalog:
                print(line)
            return 0
        if args.bindings:
            for name, binding in engine.load().bindings.items():
                kind = "interactive" if binding.is_interactive else (
                    "deferred" if binding.is_deferred else "literal"
                )
                print(f"{name:<24} {kind}")
            return 0

        try:
            invocation = engine.invoke(hint, dry_run=args.dry_run)
        except AmbiguousSelection as e:
            print(f"Hint {e.hint!r} matches {len(e.matches)} queries:")
            for line in e.matches:
                print(f"  {line}")
            return 0

    if invocation.aborted:
        print("Aborted")
        return 0
    print(f">>> {invocation.query}")
    if not args.dry_run:
        print_series(invocation.series or [])
    return 0


def build_parser() -> argparse.ArgumentParser:
    arg_parser = argparse.ArgumentParser(
        prog="influxkit",
        description="Query, write and template helper for InfluxDB",
    )
    arg_parser.add_argument("--url", help="Server URL (INFLUX_URL)")
    arg_parser.add_argument("-d", "--db", help="Database (INFLUX_DB)")
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Report what was sent and log debug output",
    )
    commands = arg_parser.add_subparsers(dest="command", required=True)

    query = commands.add_parser("query", help="Run a query and print the result")
    query.add_argument("query", help="Query text")
    query.add_argument("--epoch", help="Timestamp precision (ns, u, ms, s, m, h)")
    query.add_argument("--json", action="store_true", help="Print the raw JSON response")
    query.set_defaults(func=cmd_query)

    write = commands.add_parser("write", help="Write line protocol over HTTP")
    write.add_argument("lines", nargs="*", help="Lines to write (default: read --file or stdin)")
    write.add_argument("-f", "--file", type=Path, help="File of lines, '-' for stdin")
    write.add_argument("--precision", help="Timestamp precision of the lines")
    write.add_argument("--rp", help="Retention policy")
    write.set_defaults(func=cmd_write)

    point = commands.add_parser("point", help="Format one point and write it")
    point.add_argument("measurement")
    point.add_argument("-F", "--field", action="append", default=[], required=True,
                       help="key=value field; 12i is an integer, 1.5 a float")
    point.add_argument("-t", "--tag", action="append", default=[], help="key=value tag")
    point.add_argument("--time", type=int, help="Timestamp in nanoseconds")
    target = point.add_mutually_exclusive_group()
    target.add_argument("--udp", action="store_true", help="Send over UDP instead of HTTP")
    target.add_argument("--print", action="store_true", help="Print the line instead of sending it")
    point.set_defaults(func=cmd_point)

    udp = commands.add_parser("udp", help="Send line protocol over UDP")
    udp.add_argument("lines", nargs="*", help="Lines to send (default: read --file or stdin)")
    udp.add_argument("-f", "--file", type=Path, help="File of lines, '-' for stdin")
    udp.set_defaults(func=cmd_udp)

    ping = commands.add_parser("ping", help="Check that the server is reachable")
    ping.set_defaults(func=cmd_ping)

    template = commands.add_parser("template", help="Pick a query from the templates and run it")
    template.add_argument("hint", nargs="*", help="Characters the query contains, in order")
    template.add_argument("-T", "--template", type=Path, help="User template file (INFLUX_TEMPLATE)")
    template.add_argument("-n", "--dry-run", action="store_true", help="Print the query without running it")
    template.add_argument("--list", action="store_true", help="List the available queries")
    template.add_argument("--bindings", action="store_true", help="List the placeholder bindings")
    template.set_defaults(func=cmd_template)

    return arg_parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        settings = Settings.from_env()
        if args.url:
            settings.url = args.url
        if args.db:
            settings.database = args.db
        return args.func(args, settings)
    except (TemplateError, InfluxError, SelectorError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except httpx.HTTPError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
