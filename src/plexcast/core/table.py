"""Plain-text tables for command output."""

from collections.abc import Mapping, Sequence


class Table:
    """Column-aligned table with a header row.

    Example:
        table = Table(["Chromecast Name", "Address"])
        table.add_row({"Chromecast Name": "Kitchen", "Address": "1.2.3.5:8009"})
        table.print()
    """

    def __init__(self, columns: Sequence[str]) -> None:
        self._columns = list(columns)
        self._rows: list[list[str]] = []

    def add_row(self, values: Mapping[str, object]) -> None:
        """Add a row; missing columns are left blank."""
        self._rows.append([str(values.get(column, "") or "") for column in self._columns])

    def render(self) -> str:
        """Return the table as text."""
        widths = [len(column) for column in self._columns]
        for row in self._rows:
            widths = [max(width, len(cell)) for width, cell in zip(widths, row, strict=True)]

        def line(cells: Sequence[str]) -> str:
            return "| " + " | ".join(c.ljust(w) for c, w in zip(cells, widths, strict=True)) + " |"

        separator = "+" + "+".join("-" * (w + 2) for w in widths) + "+"
        lines = [separator, line(self._columns), separator]
        lines.extend(line(row) for row in self._rows)
        lines.append(separator)
        return "\n".join(lines)

    def print(self) -> None:
        """Print the table to stdout."""
        print(self.render())
