"""Tests for render_csv: BOM, headers, cell formatting."""

from datetime import date

from app.core.csv_export import UTF8_BOM, render_csv


def test_renders_bom_header_and_cells():
    text = render_csv([{"a": 1, "b": None, "c": True}])
    assert text == UTF8_BOM + "a,b,c\n1,,true\n"


def test_explicit_headers_render_missing_keys_empty():
    text = render_csv([{"a": 1}], headers=["a", "z"])
    assert text.splitlines()[1] == "1,"


def test_dates_are_iso_and_commas_quoted():
    text = render_csv([{"date": date(2025, 1, 2), "name": "Hoteles, restaurantes"}])
    assert text.splitlines()[1] == '2025-01-02,"Hoteles, restaurantes"'


def test_false_renders_lowercase():
    assert render_csv([{"flag": False}]).endswith("false\n")
