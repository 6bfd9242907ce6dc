"""dolarapi.com client: current quotes for every dollar type."""

import logging

from app.core.dollar_rules import Quote, map_dollar_type, parse_provider_timestamp
from app.core.domain_types import DataSource
from app.core.errors import ExternalSourceError
from app.infrastructure.http_client import ResilientHttpClient

logger = logging.getLogger(__name__)


def _price(value) -> float | None:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def parse_quotes(payload) -> list[Quote]:
    """Unknown casas and malformed timestamps are skipped with a warning."""
    if not isinstance(payload, list):
        raise ExternalSourceError("Unexpected payload shape", DataSource.DOLARAPI.value)
    quotes = []
    for item in payload:
        dollar_type = map_dollar_type(item.get("casa", ""))
        if dollar_type is None:
            logger.warning(f"Unknown dollar casa '{item.get('casa')}'")
            continue
        try:
            updated_at = parse_provider_timestamp(item.get("fechaActualizacion") or "")
        except ValueError:
            logger.warning(
                "Invalid fechaActualizacion",
                extra={"dollar_type": dollar_type.value},
            )
            continue
        quotes.append(Quote(
            dollar_type=dollar_type,
            buy_price=_price(item.get("compra")),
            sell_price=_price(item.get("venta")),
            updated_at=updated_at,
        ))
    return quotes


class DolarApiClient:
    def __init__(self, http: ResilientHttpClient, base_url: str):
        self.http = http
        self.base_url = base_url.rstrip("/")

    async def fetch_quotes(self) -> list[Quote]:
        payload = await self.http.get_json(f"{self.base_url}/dolares")
        return parse_quotes(payload)
