"""EPH (Encuesta Permanente de Hogares) workbook parsing.

The INDEC "cuadros_tasas_indicadores_eph" sheet has one header row with quarterly
periods and blocks of indicator rows, each block opened by a region/demographic label.

Invariants:
    - Periods normalized to "T<q> <yyyy>", dated at the last day of the quarter
    - One record per (period, region, gender, age_group)
    - data_type: national for the 31-agglomerate total, demographic when gender or age
      is not Total, regional otherwise
"""

import io
import re
import zipfile
from datetime import date

import pandas as pd
import xlrd

from app.core.domain_types import LaborDataType
from app.core.errors import SourceFormatError
from app.core.periods import quarter_end

NATIONAL_REGION = "Total 31 aglomerados"

INDICATOR_FIELDS = (
    "activity_rate", "employment_rate", "unemployment_rate",
)
POPULATION_FIELDS = (
    "total_population", "economically_active_population", "employed_population",
    "unemployed_population", "inactive_population",
)

_SECTION_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r"total\s*31\s*aglomerados", r"gba", r"interior", r"regi[oó]n\s*pampeana",
        r"regi[oó]n\s*noa", r"regi[oó]n\s*nea", r"regi[oó]n\s*cuyo", r"regi[oó]n\s*patag[oó]nica",
    )
]
_QUARTER_RE = re.compile(r"(T[1-4])\s*(\d{4})", re.IGNORECASE)
_QUARTER_TEXT_RE = re.compile(r"([1-4])\s*(?:er|do|ro|to|°|º)?\.?\s*trim\w*\.?\s*(\d{4})", re.IGNORECASE)
_YEAR_RE = re.compile(r"^\d{4}$")


def _text(cell) -> str:
    if cell is None or (isinstance(cell, float) and pd.isna(cell)):
        return ""
    return str(cell).strip()


def find_header_row(rows: list[list], max_rows: int = 20) -> int:
    """Index of the first row that looks like a quarterly header, -1 if none."""
    for i, row in enumerate(rows[:max_rows]):
        for cell in row:
            text = _text(cell).lower()
            if not text:
                continue
            if (
                any(f"t{q}" in text for q in range(1, 5))
                or "trimestre" in text
                or re.search(r"\d{4}", text)
            ):
                return i
    return -1


def extract_periods(header_row: list) -> list[str | None]:
    """Period per data column (column 0 is the label). Bare years continue the previous quarter."""
    periods: list[str | None] = []
    last_quarter: int | None = None
    for cell in header_row[1:]:
        text = _text(cell)
        period = None
        match = _QUARTER_RE.search(text) or _QUARTER_TEXT_RE.search(text)
        if match:
            quarter = match.group(1).upper().lstrip("T")
            period = f"T{quarter} {match.group(2)}"
            last_quarter = int(quarter)
        elif _YEAR_RE.match(text) and last_quarter is not None:
            last_quarter = last_quarter % 4 + 1
            period = f"T{last_quarter} {text}"
        periods.append(period)
    return periods


def field_for_label(label: str) -> str | None:
    name = label.lower()
    if "tasa" in name and "actividad" in name:
        return "activity_rate"
    if "tasa" in name and "empleo" in name:
        return "employment_rate"
    if "tasa" in name and ("desocupación" in name or "desocupacion" in name):
        return "unemployment_rate"
    if "población económicamente activa" in name or re.search(r"\bpea\b", name):
        return "economically_active_population"
    if "población ocupada" in name:
        return "employed_population"
    if "población desocupada" in name:
        return "unemployed_population"
    if "población inactiva" in name:
        return "inactive_population"
    if "población total" in name:
        return "total_population"
    return None


def normalize_region_name(text: str) -> str:
    name = text.lower()
    if "total" in name and "31" in name:
        return NATIONAL_REGION
    if "gba" in name:
        return "GBA"
    if "interior" in name:
        return "Interior"
    if "pampeana" in name:
        return "Región Pampeana"
    if "noa" in name:
        return "Región NOA"
    if "nea" in name:
        return "Región NEA"
    if "cuyo" in name:
        return "Región Cuyo"
    if "patagónica" in name or "patagonia" in name or "patagonica" in name:
        return "Región Patagónica"
    return text.strip()


def extract_age_group(text: str) -> str:
    name = text.lower()
    if "14" in name and "29" in name:
        return "14-29 años"
    if "30" in name and "64" in name:
        return "30-64 años"
    if "65" in name:
        return "65+ años"
    return "Total"


def extract_gender(text: str) -> str:
    name = text.lower()
    if "varones" in name or "hombres" in name:
        return "Varones"
    if "mujeres" in name:
        return "Mujeres"
    return "Total"


def period_to_date(period: str) -> date | None:
    match = re.match(r"T(\d)\s*(\d{4})", period)
    if not match:
        return None
    return quarter_end(int(match.group(1)), int(match.group(2)))


def classify_data_type(region: str, gender: str, age_group: str) -> LaborDataType:
    if gender != "Total" or age_group != "Total":
        return LaborDataType.DEMOGRAPHIC
    if region == NATIONAL_REGION:
        return LaborDataType.NATIONAL
    return LaborDataType.REGIONAL


def _number(cell) -> float | None:
    if cell is None or (isinstance(cell, float) and pd.isna(cell)):
        return None
    try:
        return float(str(cell).replace(",", "."))
    except ValueError:
        return None


def parse_labor_sheet(rows: list[list], source_file: str | None = None) -> list[dict]:
    header_idx = find_header_row(rows)
    if header_idx == -1:
        raise SourceFormatError("EPH sheet has no quarterly header row", "INDEC")
    periods = extract_periods(rows[header_idx])

    records: dict[tuple, dict] = {}
    section: tuple[str, str, str] | None = None
    for row in rows[header_idx + 1:]:
        label = _text(row[0]) if row else ""
        if not label:
            section = None
            continue
        if any(p.search(label) for p in _SECTION_PATTERNS):
            section = (normalize_region_name(label), extract_gender(label), extract_age_group(label))
        if section is None:
            continue
        field = field_for_label(label)
        if field is None:
            continue
        region, gender, age_group = section
        for col, period in enumerate(periods, start=1):
            if period is None or col >= len(row):
                continue
            value = _number(row[col])
            if value is None:
                continue
            key = (period, region, gender, age_group)
            record = records.get(key)
            if record is None:
                data_type = classify_data_type(region, gender, age_group)
                record = {
                    "date": period_to_date(period),
                    "period": period,
                    "data_type": data_type.value,
                    "region": region,
                    "gender": gender,
                    "age_group": age_group,
                    "demographic_segment": (
                        " ".join(v for v in (gender, age_group) if v != "Total") or None
                        if data_type == LaborDataType.DEMOGRAPHIC else None
                    ),
                    "source_file": source_file,
                    **{f: None for f in INDICATOR_FIELDS + POPULATION_FIELDS},
                }
                records[key] = record
            record[field] = value
    return sorted(records.values(), key=lambda r: (r["date"], r["region"], r["gender"], r["age_group"]))


def read_labor_workbook(content: bytes, source_file: str | None = None) -> list[dict]:
    """First sheet whose name mentions tasas/indicadores/cuadro, else the first sheet."""
    engine = "openpyxl" if content[:2] == b"PK" else "xlrd"
    try:
        sheets = pd.read_excel(io.BytesIO(content), sheet_name=None, header=None, engine=engine)
    except (ValueError, xlrd.XLRDError, zipfile.BadZipFile) as e:
        raise SourceFormatError(f"EPH workbook unreadable: {e}", "INDEC")
    names = list(sheets)
    if not names:
        raise SourceFormatError("EPH workbook has no sheets", "INDEC")
    chosen = next(
        (n for n in names if any(k in n.lower() for k in ("tasas", "indicadores", "cuadro"))),
        names[0],
    )
    frame = sheets[chosen].astype(object).where(sheets[chosen].notna(), None)
    return parse_labor_sheet(frame.values.tolist(), source_file)


def candidate_labor_urls(base_url: str, today: date) -> list[str]:
    """EPH workbooks for the last four quarters, newest first."""
    urls = []
    year, quarter = today.year, (today.month - 1) // 3 + 1
    for _ in range(4):
        quarter -= 1
        if quarter == 0:
            year, quarter = year - 1, 4
        urls.append(
            f"{base_url}/ftp/cuadros/menusuperior/eph/"
            f"cuadros_tasas_indicadores_eph_{quarter:02d}_{year % 100:02d}.xls"
        )
    return urls
