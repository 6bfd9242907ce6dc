"""IPC series parsing for the INDEC divisions CSV (serie_ipc_divisiones.csv).

Invariants:
    - Codigo "0" is the general level: component_code GENERAL, component_type GENERAL
    - Numeric codes are COICOP divisions (RUBRO), B/S are goods/services (BYS),
      anything else is an analytic category (CATEGORIA)
    - Rows without a parseable Periodo or index value are dropped
"""

import io
import re
import unicodedata

import pandas as pd

from app.core.errors import SourceFormatError

REQUIRED_COLUMNS = ["Codigo", "Descripcion", "Region", "Periodo", "Indice_IPC"]

REGION_ALIASES = {
    "nacional": "Nacional",
    "gba": "GBA",
    "pampeana": "Pampeana",
    "noreste": "Noreste",
    "noroeste": "Noroeste",
    "cuyo": "Cuyo",
    "patagonia": "Patagonia",
}


def code_from_name(name: str) -> str:
    """Uppercase ASCII code from a component name, at most 20 chars."""
    ascii_name = unicodedata.normalize("NFD", name).encode("ascii", "ignore").decode()
    code = re.sub(r"\s+", "_", ascii_name.upper())
    code = re.sub(r"[^A-Z0-9_]", "", code)
    code = re.sub(r"_+", "_", code).strip("_")
    if len(code) <= 20:
        return code
    parts = code.split("_")
    if len(parts) == 1:
        return code[:20]
    if len(parts[0]) >= 8:
        return parts[0]
    return "_".join(p[:3] for p in parts)[:20]


def classify_component(codigo: str, descripcion: str) -> tuple[str, str]:
    """(component_code, component_type) for a CSV row."""
    codigo = codigo.strip()
    if codigo in ("0", "00"):
        return "GENERAL", "GENERAL"
    if codigo.isdigit():
        return code_from_name(descripcion), "RUBRO"
    if codigo.upper() in ("B", "S"):
        return ("BIENES" if codigo.upper() == "B" else "SERVICIOS"), "BYS"
    return code_from_name(descripcion or codigo), "CATEGORIA"


def normalize_region(region: str) -> str:
    """Query/region normalization: 'gba' -> 'GBA', otherwise Capitalized."""
    key = region.strip().lower()
    if key in REGION_ALIASES:
        return REGION_ALIASES[key]
    return key[:1].upper() + key[1:]


def parse_ipc_frame(df: pd.DataFrame) -> list[dict]:
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise SourceFormatError(
            f"IPC CSV missing columns: {', '.join(missing)}", "INDEC",
        )
    df = df.copy()
    df["Codigo"] = df["Codigo"].astype(str).str.strip()
    df["Periodo"] = pd.to_datetime(df["Periodo"].astype(str), format="%Y%m", errors="coerce")
    df["Indice_IPC"] = pd.to_numeric(df["Indice_IPC"], errors="coerce")
    df = df.dropna(subset=["Periodo", "Indice_IPC"])

    records: dict[tuple, dict] = {}
    for rec in df.to_dict("records"):
        description = str(rec["Descripcion"]).strip()
        code, component_type = classify_component(rec["Codigo"], description)
        region = normalize_region(str(rec["Region"]))
        d = rec["Periodo"].date()
        records[(d, code, region)] = {
            "date": d,
            "component": "Nivel general" if component_type == "GENERAL" else description,
            "component_code": code,
            "component_type": component_type,
            "region": region,
            "index_value": round(float(rec["Indice_IPC"]), 4),
        }
    return sorted(records.values(), key=lambda r: (r["date"], r["region"], r["component_code"]))


def read_ipc_csv(content: bytes) -> list[dict]:
    """Decode the INDEC CSV (utf-8, falling back to latin1) and parse it."""
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        text = content.decode("latin1")
    try:
        df = pd.read_csv(io.StringIO(text), sep=";", decimal=",", dtype={"Codigo": str})
    except ValueError as e:
        raise SourceFormatError(f"IPC CSV unreadable: {e}", "INDEC")
    return parse_ipc_frame(df)
