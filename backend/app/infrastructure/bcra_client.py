"""BCRA Monetarias API client (CER, UVA and related adjustment indices).

Invariants:
    - Only points with a parseable date and value > 0 are returned
    - Full history is paged with limit/offset until metadata.resultset.count is reached
"""

import asyncio
import logging
from datetime import date

from app.core.domain_types import BcraIndex, DataSource
from app.core.errors import ExternalSourceError
from app.infrastructure.http_client import ResilientHttpClient

logger = logging.getLogger(__name__)

BCRA_VARIABLES = {"CER": 30, "UVA": 31, "UVI": 32, "ICL": 40}

PAGE_SIZE = 1000


def variable_for(index: BcraIndex) -> int:
    return BCRA_VARIABLES[index.value.upper()]


def _flatten(results: list) -> list[dict]:
    """v4.0 nests points under results[].detalle; v3.0 lists them flat."""
    points = []
    for item in results or []:
        if isinstance(item, dict) and "detalle" in item:
            points.extend(item["detalle"] or [])
        else:
            points.append(item)
    return points


def clean_points(raw: list[dict]) -> list[dict]:
    """[{fecha, valor}] to [{date, value}], dropping invalid points."""
    cleaned = []
    for point in raw:
        try:
            day = date.fromisoformat(str(point.get("fecha", ""))[:10])
            value = float(point.get("valor"))
        except (TypeError, ValueError):
            continue
        if value > 0:
            cleaned.append({"date": day, "value": value})
    return cleaned


class BcraClient:
    def __init__(self, http: ResilientHttpClient, base_url: str):
        self.http = http
        self.base_url = base_url.rstrip("/")

    async def fetch_page(
        self,
        variable_id: int,
        limit: int = PAGE_SIZE,
        offset: int = 0,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> tuple[list[dict], int]:
        """One page of points plus the total count reported by the API."""
        params: dict = {"limit": limit, "offset": offset}
        if date_from:
            params["desde"] = date_from.isoformat()
        if date_to:
            params["hasta"] = date_to.isoformat()
        body = await self.http.get_json(f"{self.base_url}/Monetarias/{variable_id}", params=params)
        if not isinstance(body, dict) or body.get("status", 200) != 200:
            raise ExternalSourceError(
                f"BCRA API returned status {body.get('status') if isinstance(body, dict) else '?'}",
                DataSource.BCRA.value,
            )
        total = ((body.get("metadata") or {}).get("resultset") or {}).get("count") or 0
        return _flatten(body.get("results")), int(total)

    async def fetch_latest(self, index: BcraIndex, count: int = 30) -> list[dict]:
        raw, _ = await self.fetch_page(variable_for(index), limit=count)
        return clean_points(raw)

    async def fetch_all(
        self,
        index: BcraIndex,
        date_from: date | None = None,
        date_to: date | None = None,
        pause_seconds: float = 0.1,
    ) -> list[dict]:
        """Every page of the series, newest first."""
        variable_id = variable_for(index)
        points: list[dict] = []
        offset = 0
        while True:
            raw, total = await self.fetch_page(
                variable_id, PAGE_SIZE, offset, date_from, date_to,
            )
            points.extend(clean_points(raw))
            offset += PAGE_SIZE
            logger.info(
                f"Fetched {len(points)} of {total} {index.value} records",
                extra={"data_source": DataSource.BCRA.value, "records": len(points)},
            )
            if offset >= total or not raw:
                break
            await asyncio.sleep(pause_seconds)
        return sorted(points, key=lambda p: p["date"], reverse=True)
