"""Provider wiring: one resilient HTTP client per data source, built from Settings.

Design Decisions:
    - Cron and admin routes receive a Providers bundle through a FastAPI dependency,
      so tests override the dependency instead of patching modules
"""

from dataclasses import dataclass

import httpx

from app.config import Settings
from app.core.domain_types import DataSource
from app.infrastructure.bcra_client import BcraClient
from app.infrastructure.dolarapi_client import DolarApiClient
from app.infrastructure.http_client import ResilientHttpClient, build_client
from app.infrastructure.indec_client import IndecClient
from app.infrastructure.sheets_client import SheetsClient


@dataclass
class Providers:
    dolarapi: DolarApiClient
    bcra: BcraClient
    indec: IndecClient
    sheets: SheetsClient
    _clients: tuple[ResilientHttpClient, ...] = ()

    async def aclose(self) -> None:
        for client in self._clients:
            await client.aclose()


def build_providers(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None,
) -> Providers:
    dolarapi_http = build_client(DataSource.DOLARAPI.value, settings, transport)
    bcra_http = build_client(
        DataSource.BCRA.value, settings, transport, verify=settings.bcra_verify_ssl,
    )
    indec_http = build_client(DataSource.INDEC.value, settings, transport)
    sheets_http = build_client(DataSource.GOOGLE_SHEETS.value, settings, transport)
    return Providers(
        dolarapi=DolarApiClient(dolarapi_http, settings.dolarapi_base_url),
        bcra=BcraClient(bcra_http, settings.bcra_base_url),
        indec=IndecClient(indec_http, settings.indec_base_url),
        sheets=SheetsClient(sheets_http, settings.embi_sheet_id, settings.embi_sheet_gid),
        _clients=(dolarapi_http, bcra_http, indec_http, sheets_http),
    )
