"""INDEC file downloads (EMAE workbook, IPC divisions CSV, EPH and poverty workbooks).

Design Decisions:
    - Parsing lives in core/*_parser.py; this module only moves bytes
    - Publication-dated workbooks are tried newest first until one downloads and parses
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from app.core.domain_types import DataSource
from app.core.errors import ArgenStatsError, ExternalSourceError
from app.infrastructure.http_client import ResilientHttpClient

logger = logging.getLogger(__name__)

EMAE_PATH = "/ftp/cuadros/economia/sh_emae_mensual_base2004.xls"
IPC_PATH = "/ftp/cuadros/economia/serie_ipc_divisiones.csv"

T = TypeVar("T")


class IndecClient:
    def __init__(self, http: ResilientHttpClient, base_url: str):
        self.http = http
        self.base_url = base_url.rstrip("/")

    async def fetch_emae_workbook(self) -> bytes:
        return await self.http.get_bytes(self.base_url + EMAE_PATH)

    async def fetch_ipc_csv(self) -> bytes:
        return await self.http.get_bytes(self.base_url + IPC_PATH)

    async def first_parsable(
        self, urls: list[str], parse: Callable[[bytes, str], T],
    ) -> tuple[str, T]:
        """Download candidates in order; return the first (url, parsed) that succeeds."""
        for i, url in enumerate(urls, start=1):
            try:
                content = await self.http.get_bytes(url)
                parsed = parse(content, url)
            except ArgenStatsError as e:
                logger.warning(
                    f"Candidate {i}/{len(urls)} failed: {e.message}",
                    extra={"url": url, "data_source": DataSource.INDEC.value},
                )
                continue
            except ValueError as e:
                logger.warning(
                    f"Candidate {i}/{len(urls)} unreadable: {e}",
                    extra={"url": url, "data_source": DataSource.INDEC.value},
                )
                continue
            logger.info("Downloaded INDEC workbook", extra={"url": url})
            return url, parsed
        raise ExternalSourceError(
            f"No candidate URL could be downloaded ({len(urls)} tried)",
            DataSource.INDEC.value,
        )
