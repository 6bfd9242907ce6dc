"""Boundary Protocols: contracts between the updaters and the provider clients.

Invariants:
    - Updaters depend on these Protocols, never on httpx or a concrete client
    - Implementations live in infrastructure/ and are injected by the cron routes

Design Decisions:
    - Protocol over ABC: structural subtyping, so tests pass small fake classes
"""

from collections.abc import Callable
from datetime import date
from typing import Protocol, TypeVar

from app.core.dollar_rules import Quote
from app.core.domain_types import BcraIndex

T = TypeVar("T")


class QuoteSource(Protocol):
    """Current dollar quotes (dolarapi.com)."""
    async def fetch_quotes(self) -> list[Quote]: ...


class IndexSource(Protocol):
    """BCRA CER/UVA series as [{date, value}]."""
    async def fetch_latest(self, index: BcraIndex, count: int = 30) -> list[dict]: ...
    async def fetch_all(
        self,
        index: BcraIndex,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[dict]: ...


class IndecSource(Protocol):
    """INDEC file downloads."""
    async def fetch_emae_workbook(self) -> bytes: ...
    async def fetch_ipc_csv(self) -> bytes: ...
    async def first_parsable(
        self, urls: list[str], parse: Callable[[bytes, str], T],
    ) -> tuple[str, T]: ...


class SheetSource(Protocol):
    """Public sheet exported as CSV text."""
    async def fetch_csv(self) -> str: ...
