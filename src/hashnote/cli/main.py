# src/hashnote/cli/main.py
import json
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..config import VARIANTS, config, get_variant
from ..error_reporter import HashnoteError, print_error
from ..hashnote_ast import describe_target
from ..hashnote_token import ANNOTATION, EOF
from ..pipeline import extract

console = Console()


def _scan_options(func):
    func = click.option('--variant', type=click.Choice(sorted(VARIANTS)), default=None,
                        help="Annotation syntax preset (default: hash)")(func)
    func = click.option('--max-depth', type=click.IntRange(min=1), default=None,
                        help="Maximum bracket nesting inside a block annotation")(func)
    func = click.option('--strict', is_flag=True, default=False,
                        help="Reject annotations that attach to no construct")(func)
    func = click.option('--no-file-flags', is_flag=True, default=False,
                        help="Ignore inline @hashnote directives")(func)
    func = click.option('--debug', is_flag=True, default=False, help="Enable debug logging")(func)
    return func


def _run(file, variant, max_depth, strict, no_file_flags, debug):
    if debug:
        config.enable_debug_logs = True
    scanner_config = get_variant(variant) if variant else None
    if max_depth is not None:
        scanner_config = (scanner_config or config.scanner_config()).with_overrides(max_nesting_depth=max_depth)
    with open(file, 'r', encoding='utf-8') as f:
        source_code = f.read()
    return extract(
        source_code,
        filename=file,
        scanner_config=scanner_config,
        strict=True if strict else None,
        honor_file_flags=not no_file_flags,
    )


def _report_diagnostics(result):
    for error in result.diagnostics:
        print_error(error)


@click.group()
@click.version_option(version="0.1.0", prog_name="hashnote")
def cli():
    """hashnote - extract annotation comments and attach them to declarations"""
    pass


@cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@_scan_options
@click.option('--json', 'as_json', is_flag=True, help="Print JSON instead of a table")
def scan(file, as_json, **options):
    """List the annotations found in FILE"""
    try:
        result = _run(file, **options)
    except HashnoteError as e:
        print_error(e)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({
            "annotations": [node.to_dict() for node in result.nodes],
            "diagnostics": [err.to_dict() for err in result.diagnostics],
        }, indent=2))
        return

    table = Table(title=f"Annotations in {file}")
    table.add_column("Line", style="yellow")
    table.add_column("Span", style="yellow")
    table.add_column("Form", style="cyan")
    table.add_column("Payload", style="green")
    table.add_column("Trailing", style="magenta")
    for node in result.nodes:
        table.add_row(str(node.line), f"[{node.span.start}, {node.span.end})",
                      node.introducer.value, escape(node.payload), node.trailing_marker)
    console.print(table)
    _report_diagnostics(result)


@cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@_scan_options
@click.option('--json', 'as_json', is_flag=True, help="Print JSON instead of a table")
def attach(file, as_json, **options):
    """Show which construct every annotation in FILE describes"""
    try:
        result = _run(file, **options)
    except HashnoteError as e:
        print_error(e)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({
            "table": result.table.to_dict(),
            "diagnostics": [err.to_dict() for err in result.diagnostics],
        }, indent=2))
        return

    table = Table(title=f"Attachments in {file}")
    table.add_column("Target", style="cyan")
    table.add_column("Annotations", style="green")
    for target, nodes in result.table.items():
        table.add_row(escape(str(target)), escape(", ".join(node.payload for node in nodes)))
    console.print(table)
    _report_diagnostics(result)


@cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@_scan_options
def tokens(file, **options):
    """Show the host token stream of FILE, annotations included"""
    try:
        result = _run(file, **options)
    except HashnoteError as e:
        print_error(e)
        sys.exit(1)

    table = Table(title="Tokens")
    table.add_column("Type", style="cyan")
    table.add_column("Literal", style="green")
    table.add_column("Line", style="yellow")
    table.add_column("Column", style="yellow")
    for token in result.tokens:
        if token.type == EOF:
            break
        style = "bold magenta" if token.type == ANNOTATION else None
        table.add_row(escape(token.type), escape(token.literal), str(token.line), str(token.column), style=style)
    console.print(table)


@cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@_scan_options
@click.option('--fill', default="", help="Text that replaces each annotation")
def strip(file, fill, **options):
    """Print FILE with every annotation removed"""
    try:
        result = _run(file, **options)
    except HashnoteError as e:
        print_error(e)
        sys.exit(1)
    click.echo(result.stripped_source(fill), nl=False)


@cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@_scan_options
def check(file, **options):
    """Check FILE for malformed annotations and host lexing problems"""
    try:
        result = _run(file, **options)
    except HashnoteError as e:
        print_error(e)
        sys.exit(1)

    if result.diagnostics:
        console.print(f"[bold red]{len(result.diagnostics)} problem(s) found[/bold red]")
        _report_diagnostics(result)
        sys.exit(1)

    summary = "\n".join(
        f"{describe_target(target)['kind']:<22} {target}" for target in result.table
    ) or "(no annotations)"
    console.print(Panel.fit(
        escape(summary),
        title=f"[bold green]{len(result.nodes)} annotation(s) OK[/bold green]",
        border_style="green",
    ))


if __name__ == "__main__":
    cli()
