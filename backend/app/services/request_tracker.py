"""Request Tracking: persist one api_requests row per tracked public call.

Invariants:
    - Internal requests without an API key are not tracked
    - API keys are stored as a 16-char sha256 prefix; sensitive params are dropped
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.request_classifier import (
    RequestClass, client_ip, hash_api_key, sanitize_params,
)
from app.models.api_request import ApiRequest

logger = logging.getLogger(__name__)


def should_track(request_class: RequestClass, api_key: str | None) -> bool:
    return bool(api_key) or not request_class.is_internal


async def track_request(
    db: AsyncSession,
    *,
    path: str,
    method: str,
    status_code: int,
    response_time_ms: int,
    headers,
    query_params,
    request_class: RequestClass,
    user_id: uuid.UUID | None = None,
) -> bool:
    """Returns False when the request is not tracked."""
    api_key = headers.get("x-api-key")
    if not should_track(request_class, api_key):
        return False
    params = sanitize_params(dict(query_params))
    db.add(ApiRequest(
        user_id=user_id,
        endpoint=path,
        method=method,
        status_code=status_code,
        response_time_ms=response_time_ms,
        user_agent=headers.get("user-agent"),
        ip_address=client_ip(headers),
        referer=headers.get("referer"),
        request_params=params or None,
        api_key_used=hash_api_key(api_key) if api_key else None,
        is_internal=request_class.is_internal,
    ))
    await db.commit()
    return True
