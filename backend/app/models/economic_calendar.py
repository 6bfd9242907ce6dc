"""EconomicCalendarEvent ORM: official release schedule shown in the calendar view."""

import uuid
from datetime import date as date_type, datetime, timezone

from sqlalchemy import String, Date, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class EconomicCalendarEvent(Base):
    __tablename__ = "economic_calendar"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    event: Mapped[str] = mapped_column(String(255), nullable=False)
    organism: Mapped[str] = mapped_column(String(100), nullable=False)
    period: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
