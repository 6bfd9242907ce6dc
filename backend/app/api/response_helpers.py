"""Response helpers shared by the data routes: CSV downloads, cache headers, query parsing."""

from datetime import date

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from app.core.csv_export import render_csv
from app.core.errors import NoDataError
from app.core.periods import parse_iso_date

CACHE_DATA = (3600, 86400)
CACHE_LATEST = (300, 900)


def cache_header(max_age: int, stale: int) -> dict[str, str]:
    return {"Cache-Control": f"public, max-age={max_age}, stale-while-revalidate={stale}"}


def cached_json(content, cache: tuple[int, int], status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        content=jsonable_encoder(content),
        status_code=status_code,
        headers=cache_header(*cache),
    )


def csv_response(rows: list[dict], filename: str, headers: list[str] | None = None) -> Response:
    """text/csv attachment; no rows is a 404."""
    if not rows:
        raise NoDataError("No hay datos para exportar")
    return Response(
        content=render_csv(rows, headers),
        media_type="text/csv; charset=UTF-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def optional_date(text: str | None, field: str) -> date | None:
    return parse_iso_date(text, field) if text else None


def iso(value) -> str | None:
    return value.isoformat() if value is not None else None
