"""Route Dependencies: cron/admin authorization, caller identity and provider wiring.

Invariants:
    - Cron routes accept "Authorization: Bearer <CRON_SECRET_KEY>" or "x-vercel-cron: true"
    - Admin routes accept "Authorization: Bearer <ADMIN_SYNC_KEY>" only
    - An empty configured secret never matches
"""

import hmac
from typing import AsyncGenerator

from fastapi import Depends, Header

from app.config import Settings, get_settings
from app.core.errors import UnauthorizedError
from app.infrastructure.providers import Providers, build_providers


def _bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip()


def _matches(token: str | None, secret: str) -> bool:
    return bool(secret) and token is not None and hmac.compare_digest(token, secret)


async def require_cron_auth(
    authorization: str | None = Header(None),
    x_vercel_cron: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    if x_vercel_cron == "true":
        return
    if not _matches(_bearer(authorization), settings.cron_secret_key):
        raise UnauthorizedError()


async def require_admin_auth(
    authorization: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    if not _matches(_bearer(authorization), settings.admin_sync_key):
        raise UnauthorizedError()


async def require_user_id(x_user_id: str | None = Header(None)) -> str:
    """External user id set by the fronting auth proxy."""
    if not x_user_id or not x_user_id.strip():
        raise UnauthorizedError("No autorizado")
    return x_user_id.strip()


async def get_providers(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[Providers, None]:
    providers = build_providers(settings)
    try:
        yield providers
    finally:
        await providers.aclose()
