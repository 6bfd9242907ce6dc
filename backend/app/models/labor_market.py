"""LaborMarket ORM: EPH quarterly rates and populations.

Invariants:
    - date is the quarter end, period is "T<q> <yyyy>"
    - Natural key (period, data_type, region, gender, age_group); demographic_segment is
      derived from gender and age_group
"""

import uuid
from datetime import date as date_type, datetime, timezone

from sqlalchemy import String, Float, Date, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class LaborMarket(Base):
    __tablename__ = "labor_market"
    __table_args__ = (
        UniqueConstraint(
            "period", "data_type", "region", "gender", "age_group",
            name="uq_labor_market_natural_key",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    period: Mapped[str] = mapped_column(String(10), nullable=False)
    data_type: Mapped[str] = mapped_column(String(20), nullable=False)
    region: Mapped[str] = mapped_column(String(60), nullable=False)
    gender: Mapped[str] = mapped_column(String(20), nullable=False, default="Total")
    age_group: Mapped[str] = mapped_column(String(20), nullable=False, default="Total")
    demographic_segment: Mapped[str | None] = mapped_column(String(60), nullable=True)
    activity_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    employment_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    unemployment_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_population: Mapped[float | None] = mapped_column(Float, nullable=True)
    economically_active_population: Mapped[float | None] = mapped_column(Float, nullable=True)
    employed_population: Mapped[float | None] = mapped_column(Float, nullable=True)
    unemployed_population: Mapped[float | None] = mapped_column(Float, nullable=True)
    inactive_population: Mapped[float | None] = mapped_column(Float, nullable=True)
    source_file: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
