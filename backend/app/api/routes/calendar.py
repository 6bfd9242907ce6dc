"""Economic Calendar Routes: scheduled statistical releases."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.response_helpers import CACHE_DATA, cached_json, optional_date
from app.core.periods import today_in_argentina, year_month_filter
from app.infrastructure.database import get_db
from app.models.economic_calendar import EconomicCalendarEvent

router = APIRouter(prefix="/api/v1/calendar", tags=["calendar"])

DEFAULT_LIMIT = 100
MAX_LIMIT = 500


@router.get("")
async def list_calendar_events(
    month: int | None = None,
    year: int | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    db: AsyncSession = Depends(get_db),
):
    # Out of range paging falls back to defaults instead of failing.
    page = page if page > 0 else 1
    limit = limit if 0 < limit <= MAX_LIMIT else DEFAULT_LIMIT

    conditions = []
    start = optional_date(start_date, "start_date")
    if start:
        conditions.append(EconomicCalendarEvent.date >= start)
    else:
        window = year_month_filter(month, year, today_in_argentina())
        if window:
            conditions.extend([
                EconomicCalendarEvent.date >= window[0],
                EconomicCalendarEvent.date <= window[1],
            ])
    end = optional_date(end_date, "end_date")
    if end:
        conditions.append(EconomicCalendarEvent.date <= end)

    total = (await db.execute(
        select(func.count(EconomicCalendarEvent.id)).where(*conditions),
    )).scalar_one()
    events = (await db.execute(
        select(EconomicCalendarEvent)
        .where(*conditions)
        .order_by(EconomicCalendarEvent.date)
        .offset((page - 1) * limit)
        .limit(limit),
    )).scalars().all()

    total_pages = -(-total // limit)
    filtered_by = {
        key: value for key, value in (
            ("month", month), ("year", year),
            ("start_date", start_date), ("end_date", end_date),
        ) if value is not None
    }
    return cached_json({
        "data": [
            {
                "id": str(e.id),
                "date": f"{e.date.isoformat()}T00:00:00",
                "event": e.event,
                "organism": e.organism,
                "period": e.period,
            }
            for e in events
        ],
        "metadata": {
            "count": len(events),
            "total_count": total,
            "filtered_by": filtered_by,
        },
        "pagination": {
            "page": page,
            "limit": limit,
            "total_pages": total_pages,
            "has_more": page < total_pages,
        },
    }, CACHE_DATA)
