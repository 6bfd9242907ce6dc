"""EMAE ORM: monthly economic activity estimator, general level and by activity.

Invariants:
    - emae: one row per month (date = first day of month)
    - emae_by_activity: one row per (month, sector code A-P)
"""

import uuid
from datetime import date as date_type, datetime, timezone

from sqlalchemy import String, Float, Date, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Emae(Base):
    __tablename__ = "emae"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    date: Mapped[date_type] = mapped_column(Date, nullable=False, unique=True)
    original_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    seasonally_adjusted_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    cycle_trend_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


class EmaeByActivity(Base):
    __tablename__ = "emae_by_activity"
    __table_args__ = (
        UniqueConstraint("date", "economy_sector_code", name="uq_emae_by_activity_date_code"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    economy_sector: Mapped[str] = mapped_column(String(120), nullable=False)
    economy_sector_code: Mapped[str] = mapped_column(String(10), nullable=False)
    original_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
