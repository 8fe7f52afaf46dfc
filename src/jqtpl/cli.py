"""jqtpl command line interface."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from jqtpl import __version__
from jqtpl.checker import Checker
from jqtpl.config import config_for
from jqtpl.errors import ConfigError, DiagnosticRenderer
from jqtpl.parser import parse
from jqtpl.source import SourceText


def _template_files(target: Path, patterns: list[str]) -> list[Path]:
    if target.is_file():
        return [target]
    found: set[Path] = set()
    for pattern in patterns:
        found.update(p for p in target.rglob(pattern) if p.is_file())
    return sorted(found)


def _read_source(file: Path) -> SourceText | None:
    """Read a template, reporting unreadable or non-UTF-8 files on stderr."""
    try:
        return SourceText.from_path(file)
    except (OSError, UnicodeDecodeError) as e:
        click.echo(f"error: {file}: {e}", err=True)
        return None


@click.group()
@click.version_option(__version__, prog_name="jqtpl")
def main() -> None:
    """Tooling for jQuery template (jqtpl) files."""


@main.command(name="parse")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print statements as JSON.")
def parse_cmd(file: str, as_json: bool) -> None:
    """Print the statements of a template."""
    source = _read_source(Path(file))
    if source is None:
        raise SystemExit(1)
    statements = parse(source.text)

    if as_json:
        click.echo(json.dumps([
            {
                "kind": st.kind.name,
                "start": st.span.start,
                "end": st.span.end,
                "body": st.stmt.body,
            }
            for st in statements
        ], indent=2))
        return

    for st in statements:
        click.echo(f"{st.stmt} {st.span}")


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
@click.option("--no-color", is_flag=True, help="Disable colored output.")
def check(path: str, no_color: bool) -> None:
    """Report unknown directives and unbalanced blocks."""
    target = Path(path)
    try:
        config = config_for(target)
    except ConfigError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)

    files = _template_files(target, config.files.patterns)
    if not files:
        click.echo("warning: no template files found", err=True)
        return

    renderer = DiagnosticRenderer(color=not no_color)
    checker = Checker(config.check)
    had_errors = False

    for file in files:
        source = _read_source(file)
        if source is None:
            had_errors = True
            continue
        result = checker.check(parse(source.text), source.text)
        for diag in result.diagnostics:
            click.echo(renderer.render(diag, source), err=True)
        if result.has_errors():
            had_errors = True

    if had_errors:
        raise SystemExit(1)
    click.echo(f"checked {len(files)} template(s) — no errors")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format", "fmt", type=click.Choice(["terminal", "html"]), default="terminal",
    help="Output format.",
)
@click.option("--plain", is_flag=True, help="Highlight directives only, not HTML.")
def highlight(file: str, fmt: str, plain: bool) -> None:
    """Print a template with syntax highlighting."""
    from pygments import highlight as pygmentize
    from pygments.formatters import HtmlFormatter, TerminalFormatter

    from jqtpl.highlight import HtmlJqtplLexer, JqtplLexer

    source = _read_source(Path(file))
    if source is None:
        raise SystemExit(1)
    lexer = JqtplLexer() if plain else HtmlJqtplLexer()
    formatter = HtmlFormatter(full=True) if fmt == "html" else TerminalFormatter()
    click.echo(pygmentize(source.text, lexer, formatter), nl=False)


@main.command()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING", help="Server log level.",
)
@click.option(
    "--log-file", type=click.Path(dir_okay=False),
    help="Write logs to this file instead of stderr.",
)
def lsp(log_level: str, log_file: str | None) -> None:
    """Start the jqtpl language server."""
    from jqtpl.lsp import main as lsp_main

    # stdout carries the protocol; logs go to stderr or a file
    logging.basicConfig(
        level=log_level.upper(),
        filename=log_file,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    lsp_main()
