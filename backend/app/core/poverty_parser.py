"""INDEC poverty report workbook parsing (cuadros_informe_pobreza_MM_YY.xls).

Invariants:
    - Periods are read from row index 2 and normalized to "S<s> <yyyy>" at the semester end
    - Cuadro 1 yields one national record per period
    - Cuadros 4.3 / 4.4 yield regional records only when at least one value parses
    - A workbook yields one record per (period, region): the poverty (4.3) and indigence (4.4)
      halves of a region are merged, and the merged record keeps the first cuadro_source
"""

import io
import re
from datetime import date

import pandas as pd
import xlrd

from app.core.domain_types import PovertyDataType
from app.core.errors import SourceFormatError
from app.core.periods import semester_end

NATIONAL_REGION = "Total 31 aglomerados"
SOURCE_FILE = "cuadros_informe_pobreza"

RATE_FIELDS = (
    "poverty_rate_persons", "poverty_rate_households",
    "indigence_rate_persons", "indigence_rate_households",
)

CUADRO_1_ROWS = {
    5: "poverty_rate_households",
    6: "poverty_rate_persons",
    9: "indigence_rate_households",
    10: "indigence_rate_persons",
}

TARGET_REGIONS = ("Gran Buenos Aires", "Cuyo", "Noreste", "Noroeste", "Pampeana", "Patagonia")

_PERIOD_ROW = 2
_LABEL_ROW = 3
_SEMESTER_RE = re.compile(r"([12])[°ºerdot]*\.?\s*semestre\s*(\d{4})", re.IGNORECASE)


def _cell(rows: list[list], r: int, c: int):
    if r >= len(rows) or c >= len(rows[r]):
        return None
    value = rows[r][c]
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return value


def _number(value) -> float | None:
    if value is None:
        return None
    try:
        return float(str(value).replace(",", "."))
    except ValueError:
        return None


def _base_record(semester: int, year: int, region: str, data_type: PovertyDataType, cuadro: str) -> dict:
    return {
        "date": semester_end(semester, year),
        "period": f"S{semester} {year}",
        "semester": semester,
        "year": year,
        "data_type": data_type.value,
        "region": region,
        "cuadro_source": cuadro,
        "source_file": SOURCE_FILE,
        **{f: None for f in RATE_FIELDS},
    }


def extract_semester_periods(rows: list[list]) -> list[tuple[int, int, int]]:
    """(column, semester, year) for each distinct period in the header row, by date."""
    if len(rows) <= _PERIOD_ROW:
        return []
    found: dict[str, tuple[int, int, int]] = {}
    for col in range(1, len(rows[_PERIOD_ROW])):
        text = str(_cell(rows, _PERIOD_ROW, col) or "")
        match = _SEMESTER_RE.search(text)
        if match:
            semester, year = int(match.group(1)), int(match.group(2))
            found.setdefault(f"S{semester} {year}", (col, semester, year))
    return sorted(found.values(), key=lambda p: semester_end(p[1], p[2]))


def parse_cuadro_1(rows: list[list]) -> list[dict]:
    records = []
    for col, semester, year in extract_semester_periods(rows):
        record = _base_record(semester, year, NATIONAL_REGION, PovertyDataType.NATIONAL, "Cuadro 1")
        for row, field in CUADRO_1_ROWS.items():
            record[field] = _number(_cell(rows, row, col))
        records.append(record)
    return records


def _find_label_column(rows: list[list], start: int, keyword: str, offsets: range, default: int) -> int:
    label = str(_cell(rows, _LABEL_ROW, default) or "").lower()
    if keyword in label:
        return default
    for offset in offsets:
        if keyword in str(_cell(rows, _LABEL_ROW, start + offset) or "").lower():
            return start + offset
    return default


def find_regional_rows(rows: list[list]) -> list[tuple[str, int]]:
    regions = []
    for i, row in enumerate(rows):
        label = re.sub(r"\(\d+\)", "", str(_cell(rows, i, 0) or "")).strip().lower()
        if not label:
            continue
        match = next(
            (t for t in TARGET_REGIONS if t.lower() in label or label in t.lower()),
            None,
        )
        if match:
            regions.append((match, i))
    return regions


def parse_regional_cuadro(rows: list[list], cuadro: str, kind: str) -> list[dict]:
    """Cuadro 4.3 (kind="poverty") or 4.4 (kind="indigence"): households and persons per region."""
    columns = []
    for col, semester, year in extract_semester_periods(rows):
        households = _find_label_column(rows, col, "hogar", range(-1, 4), col)
        persons = _find_label_column(rows, col, "persona", range(1, 5), col + 2)
        columns.append((semester, year, households, persons))

    records = []
    for region, row in find_regional_rows(rows):
        for semester, year, households_col, persons_col in columns:
            households = _number(_cell(rows, row, households_col))
            persons = _number(_cell(rows, row, persons_col))
            if households is None and persons is None:
                continue
            record = _base_record(semester, year, region, PovertyDataType.REGIONAL, cuadro)
            record[f"{kind}_rate_households"] = households
            record[f"{kind}_rate_persons"] = persons
            records.append(record)
    return records


def merge_records(records: list[dict]) -> list[dict]:
    """Combine records sharing (period, region); a later non-null rate wins."""
    merged: dict[tuple[str, str], dict] = {}
    for record in records:
        key = (record["period"], record["region"])
        existing = merged.get(key)
        if existing is None:
            merged[key] = dict(record)
            continue
        for field in RATE_FIELDS:
            if record[field] is not None:
                existing[field] = record[field]
    return list(merged.values())


def read_poverty_workbook(content: bytes) -> list[dict]:
    try:
        sheets = pd.read_excel(io.BytesIO(content), sheet_name=None, header=None, engine="xlrd")
    except (ValueError, xlrd.XLRDError) as e:
        raise SourceFormatError(f"Poverty workbook unreadable: {e}", "INDEC")
    if "Cuadro 1" not in sheets:
        raise SourceFormatError("Poverty workbook has no 'Cuadro 1' sheet", "INDEC")

    def rows_of(name: str) -> list[list]:
        frame = sheets[name].astype(object)
        return frame.where(frame.notna(), None).values.tolist()

    records = parse_cuadro_1(rows_of("Cuadro 1"))
    if not records:
        raise SourceFormatError("No semester periods found in 'Cuadro 1'", "INDEC")
    for name, kind in (("Cuadro 4.3", "poverty"), ("Cuadro 4.4", "indigence")):
        if name in sheets:
            records.extend(parse_regional_cuadro(rows_of(name), name, kind))
    return merge_records(records)


def candidate_poverty_urls(base_url: str, today: date) -> list[str]:
    """Publications are released in March (S2 of the prior year) and September (S1)."""
    publications: list[tuple[int, int]] = []
    if today.month >= 9:
        publications.append((9, today.year))
    if today.month >= 3:
        publications.append((3, today.year))
    for i in range(8):
        year = today.year - i // 2
        month = 9 if i % 2 == 0 else 3
        if (year < today.year or month < today.month) and (month, year) not in publications:
            publications.append((month, year))
    return [
        f"{base_url}/ftp/cuadros/sociedad/cuadros_informe_pobreza_{month:02d}_{year % 100:02d}.xls"
        for month, year in publications
    ]
