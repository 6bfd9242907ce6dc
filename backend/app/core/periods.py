"""Calendar helpers shared by routes, parsers and updaters.

Invariants:
    - All "today" decisions are made in Argentina local time (America/Argentina/Buenos_Aires)
    - Quarter and semester periods map to their last calendar day
"""

import calendar
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from app.core.errors import InvalidParameterError

ARGENTINA_TZ = ZoneInfo("America/Argentina/Buenos_Aires")

_QUARTER_END = {1: (3, 31), 2: (6, 30), 3: (9, 30), 4: (12, 31)}
_SEMESTER_END = {1: (6, 30), 2: (12, 31)}


def month_range(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def year_month_filter(
    month: int | None, year: int | None, today: date,
) -> tuple[date, date] | None:
    """Date window for the month/year query params.

    Only month: that month of the current year. Only year: the whole year.
    """
    if month is None and year is None:
        return None
    if month is not None and not 1 <= month <= 12:
        raise InvalidParameterError("month must be between 1 and 12", "month")
    if month is None:
        return date(year, 1, 1), date(year, 12, 31)
    return month_range(year if year is not None else today.year, month)


def quarter_end(quarter: int, year: int) -> date:
    month, day = _QUARTER_END[quarter]
    return date(year, month, day)


def semester_end(semester: int, year: int) -> date:
    month, day = _SEMESTER_END[semester]
    return date(year, month, day)


def to_local(moment: datetime) -> datetime:
    """Convert an aware datetime to Argentina time. Naive values are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ARGENTINA_TZ)


def as_utc(moment: datetime) -> datetime:
    """Normalize before persisting: timestamps are stored in UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def today_in_argentina(now: datetime | None = None) -> date:
    return to_local(now or datetime.now(timezone.utc)).date()


def is_same_local_day(a: datetime, b: datetime) -> bool:
    return to_local(a).date() == to_local(b).date()


def local_day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, end) of an Argentina calendar day, as aware UTC datetimes."""
    start = datetime(day.year, day.month, day.day, tzinfo=ARGENTINA_TZ)
    end = datetime.fromordinal(day.toordinal() + 1).replace(tzinfo=ARGENTINA_TZ)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def parse_iso_date(text: str, field: str) -> date:
    """Parse YYYY-MM-DD (a time suffix is tolerated) or raise InvalidParameterError."""
    try:
        return date.fromisoformat(text.strip()[:10])
    except (ValueError, AttributeError):
        raise InvalidParameterError(
            f"Invalid date '{text}', expected YYYY-MM-DD", field,
        )


def next_midnight(now: datetime) -> datetime:
    """Start of the next day in the timezone of `now`."""
    tomorrow = date.fromordinal(now.date().toordinal() + 1)
    return datetime(tomorrow.year, tomorrow.month, tomorrow.day, tzinfo=now.tzinfo)


def months_back(d: date, months: int) -> date:
    """Same day `months` earlier, clamped to the month's last day."""
    index = d.year * 12 + (d.month - 1) - months
    year, month = index // 12, index % 12 + 1
    for day in (d.day, 30, 29, 28):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return date(year, month, 28)
