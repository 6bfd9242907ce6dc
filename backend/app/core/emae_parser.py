"""EMAE workbook and CSV parsing.

The INDEC workbook (sh_emae_mensual_base2004.xls) has the year only on the
first month of each block, so column A is carried forward.

Invariants:
    - Column A year accepted only within 1990-2030
    - Column B must be a Spanish month name, other rows are ignored
    - One row per date; later rows win
"""

import io
from datetime import date

import pandas as pd
import xlrd

from app.core.errors import SourceFormatError

SPANISH_MONTHS = {
    "enero": 1, "febrero": 2, "marzo": 3, "abril": 4, "mayo": 5, "junio": 6,
    "julio": 7, "agosto": 8, "septiembre": 9, "setiembre": 9, "octubre": 10,
    "noviembre": 11, "diciembre": 12,
}

EMAE_SECTORS: dict[str, str] = {
    "A": "Agricultura, ganadería, caza y silvicultura",
    "B": "Pesca",
    "C": "Explotación de minas y canteras",
    "D": "Industria manufacturera",
    "E": "Electricidad, gas y agua",
    "F": "Construcción",
    "G": "Comercio",
    "H": "Hoteles y restaurantes",
    "I": "Transporte y comunicaciones",
    "J": "Intermediación financiera",
    "K": "Actividades inmobiliarias, empresariales y de alquiler",
    "L": "Administración pública y defensa",
    "M": "Enseñanza",
    "N": "Servicios sociales y de salud",
    "O": "Otras actividades de servicios",
    "P": "Hogares privados con servicio doméstico",
}

GENERAL_SECTOR = ("GENERAL", "Nivel General")


def _number(value) -> float | None:
    if value is None:
        return None
    try:
        result = float(str(value).replace(",", ".")) if isinstance(value, str) else float(value)
    except ValueError:
        return None
    return None if pd.isna(result) else result


def _year(value) -> int | None:
    number = _number(value)
    if number is None or not number.is_integer():
        return None
    return int(number) if 1990 <= number <= 2030 else None


def parse_emae_sheet(df: pd.DataFrame) -> list[dict]:
    """Rows of the first EMAE sheet (header=None) to emae records, sorted by date."""
    if df.shape[1] < 7:
        raise SourceFormatError(
            f"EMAE sheet has {df.shape[1]} columns, expected at least 7", "INDEC",
        )
    by_date: dict[date, dict] = {}
    current_year: int | None = None
    for row in df.itertuples(index=False):
        year = _year(row[0])
        if year is not None:
            current_year = year
        label = row[1]
        if not isinstance(label, str):
            continue
        month = SPANISH_MONTHS.get(label.strip().lower())
        if month is None or current_year is None:
            continue
        d = date(current_year, month, 1)
        by_date[d] = {
            "date": d,
            "original_value": _number(row[2]),
            "seasonally_adjusted_value": _number(row[4]),
            "cycle_trend_value": _number(row[6]),
        }
    return [by_date[d] for d in sorted(by_date)]


def read_emae_workbook(content: bytes) -> list[dict]:
    try:
        df = pd.read_excel(io.BytesIO(content), header=None, engine="xlrd")
    except (ValueError, xlrd.XLRDError) as e:
        raise SourceFormatError(f"EMAE workbook unreadable: {e}", "INDEC")
    return parse_emae_sheet(df)


def _read_csv(text: str, required: list[str]) -> pd.DataFrame:
    df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SourceFormatError(
            f"CSV missing columns: {', '.join(missing)}", "import",
        )
    return df


def parse_emae_csv(text: str) -> list[dict]:
    """Historical import: date, original_value, seasonally_adjusted_value, cycle_trend_value."""
    df = _read_csv(text, ["date", "original_value"])
    records = []
    for rec in df.to_dict("records"):
        records.append({
            "date": date.fromisoformat(rec["date"][:10]),
            "original_value": _number(rec["original_value"] or None),
            "seasonally_adjusted_value": _number(rec.get("seasonally_adjusted_value") or None),
            "cycle_trend_value": _number(rec.get("cycle_trend_value") or None),
        })
    return records


def parse_emae_activity_csv(text: str) -> list[dict]:
    """Historical import: date, economy_sector_code, original_value[, economy_sector]."""
    df = _read_csv(text, ["date", "economy_sector_code", "original_value"])
    records = []
    for rec in df.to_dict("records"):
        code = rec["economy_sector_code"].strip().upper()
        records.append({
            "date": date.fromisoformat(rec["date"][:10]),
            "economy_sector_code": code,
            "economy_sector": rec.get("economy_sector") or EMAE_SECTORS.get(code, code),
            "original_value": _number(rec["original_value"] or None),
        })
    return records
