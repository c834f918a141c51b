"""CSV rendering for payroll and invoice outputs."""

from __future__ import annotations

import csv
import io
from typing import Any, Iterable, Mapping, Protocol, Sequence


class ColumnRecord(Protocol):
    def to_row(self) -> dict[str, str]: ...


def records_to_rows(records: Iterable[ColumnRecord]) -> list[dict[str, str]]:
    """Render typed records keyed by their output column labels."""
    return [record.to_row() for record in records]


def to_csv(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> str:
    """Render rows as CSV text with a header line.

    Fields containing a comma, quote or line break are quoted with embedded
    quotes doubled. Missing keys render as empty fields.
    """
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(columns)
    for row in rows:
        writer.writerow(["" if row.get(column) is None else str(row.get(column)) for column in columns])
    return output.getvalue()
