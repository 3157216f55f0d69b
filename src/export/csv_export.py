"""CSV building shared by every download endpoint."""

import csv
import io
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Sequence

CSV_CONTENT_TYPE = "text/csv; charset=utf-8"

_NEEDS_QUOTING = (",", '"', "\r", "\n")


def escape_csv_field(value: Any) -> str:
    '''
    Render one CSV field.

    Examples:
        >>> escape_csv_field(None)
        ''
        >>> escape_csv_field('Smith, "Bob"')
        '"Smith, ""Bob"""'
    '''
    if value is None:
        return ""
    text = str(value)
    if any(ch in text for ch in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def build_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Header line plus one line per row, joined with newlines (no trailing newline)."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(headers)
    # csv.writer renders None as an empty field
    writer.writerows(rows)
    return output.getvalue()[:-1]


@dataclass
class CsvExport:
    """A rendered CSV download."""
    filename: str
    content: str
    row_count: int
    content_type: str = CSV_CONTENT_TYPE
    generated_at: str = ""

    def __post_init__(self):
        if not self.generated_at:
            self.generated_at = datetime.now().isoformat()

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'
