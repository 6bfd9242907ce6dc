"""Labor Market Parser — EPH quarterly sheet layout.

Invariants:
    - Blank label rows close the current region block
    - Regional vs national vs demographic decided from region/gender/age
"""

from datetime import date

import pytest

from app.core.errors import SourceFormatError
from app.core.labor_market_parser import (
    NATIONAL_REGION, candidate_labor_urls, classify_data_type, extract_age_group,
    extract_gender, extract_periods, field_for_label, normalize_region_name,
    parse_labor_sheet, period_to_date,
)


def test_extract_periods_understands_spanish_quarters():
    header = ["Indicador", "T1 2024", "T2 2024", "", "3er trimestre 2024"]
    assert extract_periods(header) == ["T1 2024", "T2 2024", None, "T3 2024"]


def test_field_for_label():
    assert field_for_label("Tasa de actividad") == "activity_rate"
    assert field_for_label("Tasa de empleo") == "employment_rate"
    assert field_for_label("Tasa de desocupación") == "unemployment_rate"
    assert field_for_label("Población ocupada") == "employed_population"
    assert field_for_label("Notas") is None


def test_region_gender_age_normalization():
    assert normalize_region_name("Total 31 aglomerados urbanos") == NATIONAL_REGION
    assert normalize_region_name("Región Patagónica") == "Región Patagónica"
    assert extract_gender("Varones de 14 a 29 años") == "Varones"
    assert extract_age_group("Varones de 14 a 29 años") == "14-29 años"
    assert extract_age_group("Mujeres") == "Total"


def test_period_to_date():
    assert period_to_date("T2 2024") == date(2024, 6, 30)
    assert period_to_date("2024") is None


def test_classify_data_type():
    assert classify_data_type(NATIONAL_REGION, "Total", "Total").value == "national"
    assert classify_data_type("GBA", "Total", "Total").value == "regional"
    assert classify_data_type("GBA", "Mujeres", "Total").value == "demographic"


def test_parse_sheet_blocks():
    rows = [
        ["Cuadro 1", None, None],
        ["Indicador", "T1 2024", "T2 2024"],
        ["Total 31 aglomerados", None, None],
        ["Tasa de actividad", 48.0, 48.5],
        ["Tasa de desocupación", 7.7, 7.6],
        [None, None, None],
        ["GBA", None, None],
        ["Tasa de empleo", 44.0, "44,5"],
    ]
    records = parse_labor_sheet(rows, "eph.xls")
    assert len(records) == 4
    gba_t1 = records[0]
    assert (gba_t1["region"], gba_t1["period"]) == ("GBA", "T1 2024")
    assert gba_t1["employment_rate"] == 44.0
    assert gba_t1["data_type"] == "regional"
    national_t2 = records[3]
    assert national_t2["date"] == date(2024, 6, 30)
    assert national_t2["activity_rate"] == 48.5
    assert national_t2["unemployment_rate"] == 7.6
    assert national_t2["demographic_segment"] is None
    assert national_t2["source_file"] == "eph.xls"
    assert records[2]["employment_rate"] == 44.5


def test_sheet_without_header_is_format_error():
    with pytest.raises(SourceFormatError):
        parse_labor_sheet([["foo"], ["bar"]])


def test_candidate_urls_are_last_four_quarters():
    urls = candidate_labor_urls("https://www.indec.gob.ar", date(2025, 2, 10))
    assert len(urls) == 4
    assert urls[0].endswith("cuadros_tasas_indicadores_eph_04_24.xls")
    assert urls[-1].endswith("cuadros_tasas_indicadores_eph_01_24.xls")
