import io
import logging
import pathlib
from typing import Optional, Tuple

import click

from specializations.compare import compare_specializations
from specializations.core import analyze_specializations, run_code, run_file, run_module
from specializations.display import show_wide
from specializations.records import MethodRecord, Table
from specializations.utils import browse
from specializations.writers import HTMLWriter, JSONWriter, TextWriter, load_json, write

from ._mutex import mutex


def _columns(cols: Optional[str]) -> Optional[Tuple[str, ...]]:
    if not cols:
        return None
    columns = tuple(column.strip() for column in cols.split(",") if column.strip())
    known = MethodRecord.COLUMNS + MethodRecord.DETAIL_COLUMNS
    unknown = [column for column in columns if column not in known]
    if unknown:
        raise click.BadParameter(
            f"unknown column(s): {', '.join(unknown)}", param_hint="'--cols'"
        )
    return columns


def _output_path(output: str, extension: str) -> pathlib.Path:
    """Give an output path without a suffix the report format's one."""
    path = pathlib.Path(output)
    if not path.suffix:
        path = path.with_suffix(f".{extension}")
    return path


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log skipped bindings.")
def main(verbose: bool):
    """Count the specialized instructions of a program's functions."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@main.command(
    context_settings={
        "ignore_unknown_options": True,
    }
)
@mutex(
    "-m",
    default=False,
    is_flag=True,
    disallow=["c"],
    help="Equivalent to: python -m...",
)
@mutex(
    "-c",
    default=False,
    is_flag=True,
    disallow=["m"],
    help="Equivalent to: python -c...",
)
@click.option(
    "--scope",
    "scopes",
    multiple=True,
    help="A module to report on (repeatable). Defaults to the program itself.",
)
@click.option(
    "--rows",
    default=10,
    show_default=True,
    help="Rows to show in text and HTML reports (0 for all).",
)
@click.option("--cols", default=None, help="Comma-separated columns to show.")
@click.option("--min", "minimum", default=None, type=int, help="Only report counts above this.")
@click.option("--details", is_flag=True, help="Include specialization details.")
@click.option("--json", "as_json", is_flag=True, help="Emit the report as JSON.")
@click.option("--html", "as_html", is_flag=True, help="Emit the report as HTML.")
@click.option("-b", "--blue", is_flag=True, help="Use a red-blue color scheme (HTML).")
@click.option("-d", "--dark", is_flag=True, help="Use a dark color scheme (HTML).")
@click.option("-I", "--indent", default=None, type=int, help="Indent the JSON output.")
@click.option("--output", default=None, help="File to write the report to.")
@click.argument("source")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def run(
    c: bool,
    m: bool,
    scopes: Tuple[str, ...],
    rows: int,
    cols: Optional[str],
    minimum: Optional[int],
    details: bool,
    as_json: bool,
    as_html: bool,
    blue: bool,
    dark: bool,
    indent: Optional[int],
    output: Optional[str],
    source: str,
    args: Tuple[str, ...],
):
    """Run a program, then report how specialized its functions became."""
    if as_json and as_html:
        raise click.UsageError("Cannot have both '--json' and '--html'!")
    if (blue or dark) and not as_html:
        raise click.UsageError("Theme arguments need '--html'!")
    if indent is not None and not as_json:
        raise click.UsageError("Cannot have '--indent' if format is not JSON!")
    columns = _columns(cols)

    if c:
        main_module, caught = run_code(source, *args)
    elif m:
        main_module, caught = run_module(source, *args)
    else:
        main_module, caught = run_file(source, *args)

    table: Table[MethodRecord] = Table()
    if scopes:
        for scope in scopes:
            found = analyze_specializations(scope, include_details=details)
            table = Table([*table, *found], columns=found.columns)
        table = table.sort("n_spec", reverse=True)
    elif main_module is not None:
        table = analyze_specializations(main_module, include_details=details)
    else:
        click.echo("The program failed before its namespace could be read.", err=True)

    if minimum is not None:
        table = table.above(minimum)

    # JSON reports feed 'diff', so they always carry every row.
    if as_json:
        text = write(JSONWriter(indent=indent), table)
        extension = JSONWriter.EXTENSION
    elif as_html:
        text = write(
            HTMLWriter(columns or table.columns, blue=blue, dark=dark),
            table.head(rows or None),
        )
        extension = HTMLWriter.EXTENSION
    else:
        buffer = io.StringIO()
        show_wide(table, cols=columns, rows=rows or None, file=buffer)
        text = buffer.getvalue()
        extension = TextWriter.EXTENSION

    if output is not None:
        _output_path(output, extension).write_text(text)
    elif as_html:
        browse(text)
    else:
        click.echo(text, nl=not text.endswith("\n"))

    if caught:
        raise caught[0] from None


@main.command()
@click.argument("before", type=click.Path(exists=True, dir_okay=False))
@click.argument("after", type=click.Path(exists=True, dir_okay=False))
@click.option("-q", "--quiet", is_flag=True, help="Only print the delta table.")
def diff(before: str, after: str, quiet: bool):
    """Compare two JSON reports written by 'run --json'."""
    try:
        earlier = Table.from_dicts(load_json(pathlib.Path(before).read_text()))
        later = Table.from_dicts(load_json(pathlib.Path(after).read_text()))
    except (ValueError, KeyError) as exception:
        raise click.UsageError(f"Cannot read report: {exception}")
    deltas = compare_specializations(earlier, later, verbose=not quiet)
    if quiet:
        show_wide(deltas, rows=None)
