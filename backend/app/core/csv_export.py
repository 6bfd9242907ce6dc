"""CSV rendering for the `format=csv` variant of every data endpoint."""

import csv
import io
from collections.abc import Sequence
from datetime import date, datetime

UTF8_BOM = "\ufeff"


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def render_csv(rows: Sequence[dict], headers: Sequence[str] | None = None) -> str:
    """Render rows as CSV text with a UTF-8 BOM so spreadsheets detect the encoding.

    Headers default to the keys of the first row. Missing keys render empty.
    """
    if headers is None:
        headers = list(rows[0].keys()) if rows else []
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(row.get(h)) for h in headers])
    return UTF8_BOM + buffer.getvalue()
