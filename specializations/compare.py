import sys
import typing

from .display import show_wide
from .records import DeltaRecord, MethodRecord, Table


def _index(table: Table[MethodRecord]) -> dict[tuple[str, int], MethodRecord]:
    # The first record wins when a location is bound under several names.
    index: dict[tuple[str, int], MethodRecord] = {}
    for record in table:
        index.setdefault(record.key, record)
    return index


def new_methods(
    before: Table[MethodRecord], after: Table[MethodRecord]
) -> Table[MethodRecord]:
    """Records of ``after`` whose location does not appear in ``before``.

    Like the delta table, a location bound under several names shows up once.
    """
    seen = _index(before)
    return Table(
        (record for key, record in _index(after).items() if key not in seen),
        columns=after.columns,
    )


def _percent(before: int, after: int) -> str:
    if not before:
        return "n/a"
    return f"{(after - before) / before * 100:+.1f}%"


def compare_specializations(
    before: Table[MethodRecord],
    after: Table[MethodRecord],
    *,
    verbose: bool = True,
    file: typing.TextIO | None = None,
) -> Table[DeltaRecord]:
    """Match two snapshots by location and report how the counts moved.

    Returns one ``DeltaRecord`` per method found in both snapshots, largest
    increase first. Methods only present in ``after`` are left out here; see
    ``new_methods``.
    """
    earlier = _index(before)
    deltas = []
    for location, record in _index(after).items():
        previous = earlier.get(location)
        if previous is None:
            continue
        deltas.append(
            DeltaRecord(
                name=record.name,
                method=record.method,
                location=record.location,
                before=previous.n_spec,
                after=record.n_spec,
            )
        )
    table = Table(deltas, columns=DeltaRecord.COLUMNS).sort("delta", reverse=True)

    if verbose:
        if file is None:
            file = sys.stdout
        added = new_methods(before, after)
        total_before, total_after = before.total, after.total
        increased = sum(1 for delta in table if delta.delta > 0)
        decreased = sum(1 for delta in table if delta.delta < 0)
        print(
            f"Specializations: {total_before} -> {total_after} "
            f"({total_after - total_before:+d}, {_percent(total_before, total_after)})",
            file=file,
        )
        print(
            f"Methods: {increased} increased, {decreased} decreased, "
            f"{len(table) - increased - decreased} unchanged, {len(added)} new",
            file=file,
        )
        changed = table.filter(lambda delta: delta.delta != 0)
        if changed:
            print(file=file)
            show_wide(changed, rows=None, file=file)
        if added:
            print(file=file)
            print("New methods:", file=file)
            show_wide(added, cols=("name", "n_spec", "method", "location"), rows=None, file=file)
    return table
