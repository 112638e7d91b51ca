import dataclasses
import types
import typing

from typing_extensions import Self

from .stats import Stats

STATS_COLUMNS = tuple(field.name for field in dataclasses.fields(Stats))


@dataclasses.dataclass(frozen=True, slots=True)
class Specialization:
    """A single instruction site holding a specialized opcode."""

    opname: str
    family: str
    line: int | None
    offset: int

    def __str__(self) -> str:
        return f"{self.opname}@{self.line}"


@dataclasses.dataclass(frozen=True, slots=True)
class MethodRecord:
    """One function found in a scope, and how specialized its code is."""

    COLUMNS: typing.ClassVar[tuple[str, ...]] = (
        "name",
        "n_spec",
        "method",
        "signature",
        "location",
        "module_name",
        "file",
        "line",
    )
    DETAIL_COLUMNS: typing.ClassVar[tuple[str, ...]] = (
        "spec_list",
        *STATS_COLUMNS,
    )

    name: str
    n_spec: int
    method: str
    signature: str
    location: str
    module_name: str
    file: str
    line: int
    spec_list: tuple[Specialization, ...] = ()
    stats: Stats = Stats()
    method_object: types.FunctionType | None = dataclasses.field(
        default=None, compare=False, repr=False
    )

    @property
    def key(self) -> tuple[str, int]:
        """The location identity used to match records across snapshots."""
        return self.file, self.line

    def value(self, column: str) -> typing.Any:
        if column in STATS_COLUMNS:
            return getattr(self.stats, column)
        if column not in self.COLUMNS and column not in self.DETAIL_COLUMNS:
            raise KeyError(column)
        return getattr(self, column)

    def to_dict(self) -> dict[str, typing.Any]:
        data = {column: getattr(self, column) for column in self.COLUMNS}
        data["spec_list"] = [dataclasses.asdict(spec) for spec in self.spec_list]
        data["stats"] = dataclasses.asdict(self.stats)
        return data

    @classmethod
    def from_dict(cls, data: typing.Mapping[str, typing.Any]) -> Self:
        return cls(
            name=data["name"],
            n_spec=int(data["n_spec"]),
            method=data["method"],
            signature=data["signature"],
            location=data["location"],
            module_name=data["module_name"],
            file=data["file"],
            line=int(data["line"]),
            spec_list=tuple(Specialization(**spec) for spec in data.get("spec_list", ())),
            stats=Stats.from_dict(data.get("stats", {})),
        )


@dataclasses.dataclass(frozen=True, slots=True)
class DeltaRecord:
    """How a method's specialization count moved between two snapshots."""

    COLUMNS: typing.ClassVar[tuple[str, ...]] = (
        "name",
        "delta",
        "before",
        "after",
        "method",
        "location",
    )

    name: str
    method: str
    location: str
    before: int
    after: int

    @property
    def delta(self) -> int:
        return self.after - self.before

    def value(self, column: str) -> typing.Any:
        if column not in self.COLUMNS:
            raise KeyError(column)
        return getattr(self, column)


Record = typing.TypeVar("Record", MethodRecord, DeltaRecord)


class Table(typing.Generic[Record]):
    """An immutable, ordered snapshot of records."""

    __slots__ = ("_records", "_columns")

    def __init__(
        self,
        records: typing.Iterable[Record] = (),
        *,
        columns: typing.Sequence[str] | None = None,
    ) -> None:
        self._records: tuple[Record, ...] = tuple(records)
        if columns is None:
            columns = type(self._records[0]).COLUMNS if self._records else ()
        self._columns = tuple(columns)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> typing.Iterator[Record]:
        return iter(self._records)

    def __getitem__(self, index: int) -> Record:
        return self._records[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return self._records == other._records

    def __hash__(self) -> int:
        return hash(self._records)

    def __repr__(self) -> str:
        return f"<Table rows={len(self)} columns={list(self._columns)}>"

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    @property
    def total(self) -> int:
        """Sum of the specialization counts.

        Only method tables have one; a delta table's records carry no count.
        """
        if not all(isinstance(record, MethodRecord) for record in self):
            raise TypeError("total is only defined for tables of MethodRecord")
        return sum(record.n_spec for record in self)

    def _derive(self, records: typing.Iterable[Record]) -> "Table[Record]":
        return Table(records, columns=self._columns)

    def sort(self, key: str = "n_spec", *, reverse: bool = True) -> "Table[Record]":
        """Return a copy sorted on a column (stable)."""
        return self._derive(
            sorted(self._records, key=lambda record: record.value(key), reverse=reverse)
        )

    def filter(self, predicate: typing.Callable[[Record], bool]) -> "Table[Record]":
        return self._derive(record for record in self._records if predicate(record))

    def above(self, threshold: int) -> "Table[Record]":
        """Rows specialized strictly more than ``threshold`` times."""
        return self.filter(lambda record: record.n_spec > threshold)

    def head(self, n: int | None = 10) -> "Table[Record]":
        if n is None:
            return self
        return self._derive(self._records[:n])

    def rows(
        self, cols: typing.Sequence[str] | None = None
    ) -> list[dict[str, typing.Any]]:
        """Project every record onto the given columns."""
        columns = self._columns if cols is None else tuple(cols)
        return [{column: record.value(column) for column in columns} for record in self]

    def to_dicts(self) -> list[dict[str, typing.Any]]:
        return [record.to_dict() for record in self]

    @classmethod
    def from_dicts(
        cls, rows: typing.Iterable[typing.Mapping[str, typing.Any]]
    ) -> "Table[MethodRecord]":
        return Table(MethodRecord.from_dict(row) for row in rows)
