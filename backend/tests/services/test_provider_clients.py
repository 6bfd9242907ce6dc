"""Provider clients — URL building and payload parsing for BCRA, dolarapi, INDEC and Sheets."""

from datetime import date

import httpx
import pytest

from app.core.domain_types import BcraIndex, DollarType
from app.core.errors import ExternalSourceError
from app.infrastructure.bcra_client import BcraClient, clean_points
from app.infrastructure.dolarapi_client import DolarApiClient, parse_quotes
from app.infrastructure.http_client import ResilientHttpClient
from app.infrastructure.indec_client import IndecClient
from app.infrastructure.sheets_client import SheetsClient


def _http(handler):
    return ResilientHttpClient(
        "test", max_retries=0, base_delay_ms=1, transport=httpx.MockTransport(handler),
    )


def _bcra_body(points, total, status=200):
    return {
        "status": status,
        "metadata": {"resultset": {"count": total, "offset": 0, "limit": 1000}},
        "results": [{"idVariable": 30, "detalle": points}],
    }


def test_clean_points_drops_invalid():
    raw = [
        {"fecha": "2025-01-15", "valor": 500.5},
        {"fecha": "2025-01-14", "valor": 0},
        {"fecha": "not-a-date", "valor": 1.0},
        {"fecha": "2025-01-13", "valor": None},
    ]
    assert clean_points(raw) == [{"date": date(2025, 1, 15), "value": 500.5}]


async def test_bcra_latest_requests_variable_and_limit():
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json=_bcra_body([{"fecha": "2025-01-15", "valor": 1300.0}], 1))

    http = _http(handler)
    points = await BcraClient(http, "https://bcra.test/v4.0").fetch_latest(BcraIndex.UVA, 5)
    await http.aclose()

    assert points == [{"date": date(2025, 1, 15), "value": 1300.0}]
    assert seen[0].path == "/v4.0/Monetarias/31"
    assert seen[0].params["limit"] == "5"


async def test_bcra_fetch_all_pages_until_count():
    offsets = []

    def handler(request):
        offset = int(request.url.params["offset"])
        offsets.append(offset)
        page = (
            [{"fecha": "2025-01-14", "valor": 499.0}, {"fecha": "2025-01-15", "valor": 500.0}]
            if offset == 0 else [{"fecha": "2020-01-02", "valor": 20.0}]
        )
        return httpx.Response(200, json=_bcra_body(page, 1500))

    http = _http(handler)
    points = await BcraClient(http, "https://bcra.test").fetch_all(
        BcraIndex.CER, date_from=date(2020, 1, 1), pause_seconds=0,
    )
    await http.aclose()

    assert offsets == [0, 1000]
    assert [p["date"] for p in points] == [date(2025, 1, 15), date(2025, 1, 14), date(2020, 1, 2)]


async def test_bcra_error_status_raises():
    http = _http(lambda request: httpx.Response(200, json={"status": 400, "errorMessages": ["x"]}))
    with pytest.raises(ExternalSourceError):
        await BcraClient(http, "https://bcra.test").fetch_latest(BcraIndex.CER)
    await http.aclose()


def test_parse_quotes_maps_casas_and_skips_unknown():
    quotes = parse_quotes([
        {"casa": "blue", "compra": 1200, "venta": 1220, "fechaActualizacion": "2025-01-15T14:00:00Z"},
        {"casa": "contadoconliqui", "compra": None, "venta": "1250.5",
         "fechaActualizacion": "2025-01-15T14:00:00Z"},
        {"casa": "lunar", "compra": 1, "venta": 1, "fechaActualizacion": "2025-01-15T14:00:00Z"},
        {"casa": "tarjeta", "compra": 1, "venta": 1, "fechaActualizacion": "ayer"},
    ])
    assert [q.dollar_type for q in quotes] == [DollarType.BLUE, DollarType.CCL]
    assert quotes[1].buy_price is None
    assert quotes[1].sell_price == 1250.5


def test_parse_quotes_rejects_non_list():
    with pytest.raises(ExternalSourceError):
        parse_quotes({"error": "down"})


async def test_dolarapi_fetches_dolares():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json=[])

    http = _http(handler)
    assert await DolarApiClient(http, "https://dolarapi.test/v1/").fetch_quotes() == []
    await http.aclose()
    assert seen == ["/v1/dolares"]


async def test_indec_first_parsable_skips_missing_files():
    def handler(request):
        if request.url.path.endswith("_04_24.xls"):
            return httpx.Response(404)
        return httpx.Response(200, content=b"workbook")

    http = _http(handler)
    client = IndecClient(http, "https://indec.test")
    urls = ["https://indec.test/a_04_24.xls", "https://indec.test/a_03_24.xls"]
    url, parsed = await client.first_parsable(urls, lambda content, u: content.decode())
    await http.aclose()

    assert url == urls[1]
    assert parsed == "workbook"


async def test_indec_first_parsable_all_fail():
    def parse(content, url):
        raise ValueError("not a workbook")

    http = _http(lambda request: httpx.Response(200, content=b"html"))
    with pytest.raises(ExternalSourceError):
        await IndecClient(http, "https://indec.test").first_parsable(["https://indec.test/x.xls"], parse)
    await http.aclose()


async def test_sheets_client_exports_csv():
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, text="id,fecha,indice\n")

    http = _http(handler)
    text = await SheetsClient(http, "sheet123", "7").fetch_csv()
    await http.aclose()

    assert text.startswith("id,fecha")
    assert seen[0].path == "/spreadsheets/d/sheet123/export"
    assert seen[0].params["format"] == "csv"
    assert seen[0].params["gid"] == "7"
