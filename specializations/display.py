import sys
import typing

from .records import Table
from .writers import TextWriter, write


def show_wide(
    table: Table,
    *,
    cols: typing.Sequence[str] | None = None,
    rows: int | None = 10,
    file: typing.TextIO | None = None,
) -> None:
    """Print a table at full width.

    ``cols`` picks (and orders) the columns to show, ``rows`` caps how many
    rows are printed; pass ``rows=None`` to print all of them.
    """
    if file is None:
        file = sys.stdout
    if not table:
        print("(no methods)", file=file)
        return
    columns = table.columns if cols is None else tuple(cols)
    for column in columns:
        # Fail before printing anything.
        table[0].value(column)
    shown = table.head(rows)
    print(write(TextWriter(columns), shown), file=file)
    omitted = len(table) - len(shown)
    if omitted:
        print(f"... {omitted} more row{'s' if omitted != 1 else ''}", file=file)
