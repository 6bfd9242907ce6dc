"""Tests for IPC component classification and CSV parsing."""

from datetime import date

import pandas as pd
import pytest

from app.core.errors import SourceFormatError
from app.core.ipc_parser import (
    classify_component, code_from_name, normalize_region, parse_ipc_frame, read_ipc_csv,
)


def test_classify_component_kinds():
    assert classify_component("0", "Nivel general") == ("GENERAL", "GENERAL")
    assert classify_component("01", "Alimentos y bebidas no alcohólicas") == ("ALIMENTOS", "RUBRO")
    assert classify_component("B", "Bienes") == ("BIENES", "BYS")
    assert classify_component("S", "Servicios") == ("SERVICIOS", "BYS")
    assert classify_component("Estacional", "Estacional") == ("ESTACIONAL", "CATEGORIA")


def test_code_from_name_strips_accents_and_punctuation():
    assert code_from_name("Salud") == "SALUD"
    assert code_from_name("Vivienda, agua, electricidad, gas y otros combustibles") == "VIVIENDA"
    assert code_from_name("Educación") == "EDUCACION"


def test_normalize_region():
    assert normalize_region("gba") == "GBA"
    assert normalize_region("NACIONAL") == "Nacional"
    assert normalize_region("patagonia") == "Patagonia"


def test_parse_frame_drops_bad_periods_and_sorts():
    df = pd.DataFrame({
        "Codigo": ["0", "01", "0"],
        "Descripcion": ["Nivel general", "Alimentos y bebidas no alcohólicas", "Nivel general"],
        "Region": ["Nacional", "GBA", "Nacional"],
        "Periodo": ["202401", "202401", "abc"],
        "Indice_IPC": [100.5, 110.0, 1.0],
    })
    records = parse_ipc_frame(df)
    assert [(r["region"], r["component_code"]) for r in records] == [
        ("GBA", "ALIMENTOS"), ("Nacional", "GENERAL"),
    ]
    general = records[1]
    assert general["date"] == date(2024, 1, 1)
    assert general["component"] == "Nivel general"
    assert general["index_value"] == 100.5


def test_parse_frame_requires_columns():
    with pytest.raises(SourceFormatError):
        parse_ipc_frame(pd.DataFrame({"Codigo": ["0"]}))


def test_read_csv_falls_back_to_latin1():
    text = (
        "Codigo;Descripcion;Periodo;Indice_IPC;Region\n"
        "01;Alimentos y bebidas no alcohólicas;202402;4261,5324;Nacional\n"
    )
    [record] = read_ipc_csv(text.encode("latin1"))
    assert record["component"] == "Alimentos y bebidas no alcohólicas"
    assert record["index_value"] == 4261.5324
    assert record["date"] == date(2024, 2, 1)
