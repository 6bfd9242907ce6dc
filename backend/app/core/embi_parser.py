"""EMBI (riesgo país) sheet parsing.

Rows come from the "Indice EMBI" sheet exported as CSV: id, fecha, indice.

Invariants:
    - Dates without time are the Argentina daily close: 18:00 at UTC-3
    - Dates with time are UTC
    - Rows with empty id/fecha or a non-numeric indice are skipped, never fatal
"""

import io
import re
from datetime import datetime, timedelta, timezone

import pandas as pd

from app.core.errors import SourceFormatError

_DATE_RE = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4})(?:\s+(\d{1,2}):(\d{2})(?::(\d{2}))?)?$",
)
_ARGENTINA_CLOSE = timezone(timedelta(hours=-3))


def parse_embi_date(text: str) -> datetime | None:
    """'29/3/1999' -> 1999-03-29T18:00-03:00; '12/7/2025 18:10:47' -> UTC."""
    if not text:
        return None
    cleaned = text.strip()
    match = _DATE_RE.match(cleaned)
    if match:
        day, month, year, hour, minute, second = match.groups()
        try:
            if hour is None:
                return datetime(int(year), int(month), int(day), 18, 0, tzinfo=_ARGENTINA_CLOSE)
            return datetime(
                int(year), int(month), int(day),
                int(hour), int(minute), int(second or 0), tzinfo=timezone.utc,
            )
        except ValueError:
            return None
    try:
        moment = datetime.fromisoformat(cleaned.replace("Z", "+00:00"))
    except ValueError:
        return None
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _to_float(value: str) -> float | None:
    try:
        return float(value.replace(",", "."))
    except (ValueError, AttributeError):
        return None


def parse_embi_rows(csv_text: str) -> list[dict]:
    """CSV export of the EMBI sheet to [{external_id, closing_date, value}]."""
    if not csv_text.strip():
        return []
    try:
        df = pd.read_csv(io.StringIO(csv_text), dtype=str, keep_default_na=False)
    except pd.errors.ParserError as e:
        raise SourceFormatError(f"EMBI export is not valid CSV: {e}", "Google Sheets")
    if df.shape[1] < 3:
        return []
    df = df.iloc[:, :3]
    df.columns = ["id", "fecha", "indice"]
    records = []
    for rec in df.to_dict("records"):
        external_id = rec["id"].strip()
        value = _to_float(rec["indice"].strip())
        moment = parse_embi_date(rec["fecha"])
        if not external_id or value is None or moment is None:
            continue
        records.append({"external_id": external_id, "closing_date": moment, "value": value})
    return records
