"""API Access: decide whether a public data request may proceed and with which limits.

Invariants:
    - Localhost hosts and internal browser requests are unlimited and need no key
    - External requests need a known x-api-key; a valid key bumps daily_requests_count
    - Limits are virtual (tracking only): limit N, remaining N-1 for keyed requests

Design Decisions:
    - Raises ApiKeyError for the caller to render; infrastructure failures are left to
      the middleware, which lets the request through
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ApiKeyError
from app.core.periods import next_midnight, to_local
from app.core.request_classifier import RequestClass
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessGrant:
    limit: int
    remaining: int
    reset: datetime
    user_id: uuid.UUID | None = None

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": self.reset.isoformat(),
        }


def unlimited(now: datetime, limit: int) -> AccessGrant:
    return AccessGrant(limit=limit, remaining=limit, reset=now + timedelta(days=1))


async def check_access(
    db: AsyncSession,
    request_class: RequestClass,
    api_key: str | None,
    limit: int,
    now: datetime | None = None,
) -> AccessGrant:
    now = now or datetime.now(timezone.utc)
    if request_class.is_localhost:
        return unlimited(now, limit)
    if request_class.is_internal and not request_class.is_development_tool:
        return unlimited(now, limit)
    if not api_key:
        raise ApiKeyError("API key required for external requests")

    user = (await db.execute(select(User).where(User.api_key == api_key))).scalar_one_or_none()
    if user is None:
        raise ApiKeyError("Invalid API key")

    await db.execute(
        update(User)
        .where(User.id == user.id)
        .values(
            daily_requests_count=User.daily_requests_count + 1,
            updated_at=now,
        ),
    )
    await db.commit()
    return AccessGrant(
        limit=limit,
        remaining=limit - 1,
        reset=next_midnight(to_local(now)),
        user_id=user.id,
    )
