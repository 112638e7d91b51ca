import colorsys
import html
import json
import typing

from tabulate import tabulate

from .records import DeltaRecord, MethodRecord
from .stats import Stats


def _cell(value: typing.Any) -> typing.Any:
    if isinstance(value, tuple):
        return ", ".join(str(item) for item in value)
    return value


class Writer(typing.Protocol):
    EXTENSION: typing.ClassVar[str]

    def add(self, record: MethodRecord) -> None:
        ...

    def emit(self) -> str:
        ...


class TextWriter:
    """Write a plain-text table, never truncating a cell."""

    EXTENSION: typing.ClassVar[str] = "txt"

    def __init__(self, columns: typing.Sequence[str], *, tablefmt: str = "simple") -> None:
        self._columns = tuple(columns)
        self._tablefmt = tablefmt
        self._rows: list[list[typing.Any]] = []

    def add(self, record: MethodRecord | DeltaRecord) -> None:
        self._rows.append([_cell(record.value(column)) for column in self._columns])

    def emit(self) -> str:
        return tabulate(
            self._rows,
            headers=self._columns,
            tablefmt=self._tablefmt,
            disable_numparse=True,
        )


class HTMLWriter:
    """Write an HTML table, shading each method by how quickened its code is."""

    EXTENSION: typing.ClassVar[str] = "html"

    def __init__(
        self, columns: typing.Sequence[str], *, blue: bool = False, dark: bool = False
    ) -> None:
        self._columns = tuple(columns)
        self._blue = blue
        self._dark = dark
        background_color, color = ("black", "white") if dark else ("white", "black")
        self._parts = [
            "<!doctype html>",
            "<html>",
            "<head>",
            "<meta http-equiv='content-type' content='text/html;charset=utf-8'/>",
            "</head>",
            f"<body style='background-color:{background_color};color:{color}'>",
            "<table>",
            "<tr>",
            *(f"<th>{html.escape(column)}</th>" for column in self._columns),
            "</tr>",
        ]

    def add(self, record: MethodRecord) -> None:
        """Add a method's row to the output."""
        color = self._color(record.stats)
        attribute = "color" if self._dark else "background-color"
        style = f" style='{attribute}:{color}'" if color != "#ffffff" else ""
        cells = "".join(
            f"<td>{html.escape(str(_cell(record.value(column))))}</td>"
            for column in self._columns
        )
        self._parts.append(f"<tr{style}>{cells}</tr>")

    def emit(self) -> str:
        """Emit the HTML."""
        return "".join([*self._parts, "</table></body></html>"])

    def _color(self, stats: "Stats") -> str:
        """Compute an RGB color code for this method."""
        quickened = stats.quickened
        if not quickened:
            return "#ffffff"
        # Red is 0/3, green is 1/3. This gives a hue along the red-green gradient
        # that reflects the hit rate:
        hue = 1 / 3 * stats.specialized / quickened
        if self._blue:
            # This turns our red-green (0/3 to 1/3) gradient into a red-blue (0/3 to
            # -1/3) gradient:
            hue = -hue
        lightness = max(1 / 2, stats.unquickened / (quickened + stats.unquickened))
        # Always fully saturate the color:
        saturation = 1
        rgb = colorsys.hls_to_rgb(hue, lightness, saturation)
        return f"#{int(255 * rgb[0]):02x}{int(255 * rgb[1]):02x}{int(255 * rgb[2]):02x}"


class JSONWriter:
    """Write records as JSON, in the form ``load_json`` reads back."""

    EXTENSION: typing.ClassVar[str] = "json"

    def __init__(self, *, indent: int | str | None = None) -> None:
        self._indent = indent
        self._data: list[dict[str, typing.Any]] = []

    def add(self, record: MethodRecord) -> None:
        self._data.append(record.to_dict())

    def emit(self) -> str:
        """Emit the JSON data"""
        return json.dumps({"data": self._data}, indent=self._indent)


def load_json(text: str) -> list[dict[str, typing.Any]]:
    """Read the rows out of a ``JSONWriter`` export."""
    payload = json.loads(text)
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
        raise ValueError("not a specializations export: expected {'data': [...]}")
    return payload["data"]


def write(writer: Writer, records: typing.Iterable[MethodRecord]) -> str:
    for record in records:
        writer.add(record)
    return writer.emit()
