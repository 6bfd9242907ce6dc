"""Users: API key issuance, usage statistics and the daily counter reset.

Invariants:
    - API keys are "ask_" followed by 48 hex characters (24 random bytes)
    - Rotating a key invalidates the previous one immediately
"""

import logging
import secrets
from collections import Counter
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ApiKey
from app.core.errors import ResourceNotFoundError
from app.core.periods import to_local
from app.models.api_request import ApiRequest
from app.models.user import User

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "ask_"


def generate_api_key() -> ApiKey:
    return ApiKey(API_KEY_PREFIX + secrets.token_hex(24))


async def get_user(db: AsyncSession, external_user_id: str) -> User | None:
    return (await db.execute(
        select(User).where(User.external_user_id == external_user_id),
    )).scalar_one_or_none()


async def rotate_api_key(
    db: AsyncSession,
    external_user_id: str,
    email: str | None = None,
    name: str | None = None,
) -> User:
    """Create the user on first use (free plan) and assign a fresh key."""
    user = await get_user(db, external_user_id)
    if user is None:
        user = User(external_user_id=external_user_id, email=email, name=name, plan_type="free")
        db.add(user)
        logger.info("Created user for API key request")
    user.api_key = generate_api_key()
    user.updated_at = datetime.now(timezone.utc)
    await db.commit()
    return user


async def usage_stats(
    db: AsyncSession,
    external_user_id: str,
    days: int = 30,
    detailed: bool = False,
    now: datetime | None = None,
) -> dict:
    now = now or datetime.now(timezone.utc)
    user = await get_user(db, external_user_id)
    if user is None:
        raise ResourceNotFoundError("User", external_user_id)

    since = now - timedelta(days=days)
    rows = (await db.execute(
        select(ApiRequest.endpoint, ApiRequest.status_code,
               ApiRequest.response_time_ms, ApiRequest.created_at)
        .where(ApiRequest.user_id == user.id, ApiRequest.created_at >= since)
        .order_by(ApiRequest.created_at.desc()),
    )).all()

    by_endpoint = Counter(r.endpoint for r in rows)
    week_start = to_local(now).date() - timedelta(days=6)
    daily = Counter(
        to_local(r.created_at).date() for r in rows
        if to_local(r.created_at).date() >= week_start
    )
    stats = {
        "user": {
            "plan_type": user.plan_type,
            "daily_requests_count": user.daily_requests_count,
            "has_api_key": bool(user.api_key),
        },
        "period": {"days": days, "from": since.isoformat(), "to": now.isoformat()},
        "total_requests": len(rows),
        "top_endpoints": [
            {"endpoint": e, "count": c} for e, c in by_endpoint.most_common(5)
        ],
        "daily_distribution": [
            {
                "date": (week_start + timedelta(days=i)).isoformat(),
                "count": daily.get(week_start + timedelta(days=i), 0),
            }
            for i in range(7)
        ],
    }
    if detailed:
        details = {}
        for r in rows:
            entry = details.setdefault(r.endpoint, {"count": 0, "errors": 0, "total_ms": 0})
            entry["count"] += 1
            entry["errors"] += 1 if r.status_code >= 400 else 0
            entry["total_ms"] += r.response_time_ms or 0
        stats["endpoint_details"] = [
            {
                "endpoint": endpoint,
                "count": d["count"],
                "error_count": d["errors"],
                "avg_response_time_ms": round(d["total_ms"] / d["count"]),
            }
            for endpoint, d in sorted(details.items(), key=lambda kv: -kv[1]["count"])
        ]
    return stats


async def reset_daily_requests(db: AsyncSession, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        update(User).values(daily_requests_count=0, last_request_reset_at=now),
    )
    await db.commit()
    return result.rowcount or 0
