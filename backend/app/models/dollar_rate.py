"""DollarRate ORM: one quote per dollar type and instant.

Invariants:
    - Natural key (date, dollar_type): re-ingesting the same quote is a no-op
    - date and updated_at are stored in UTC; "today" is decided in Argentina time
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Float, DateTime, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class DollarRate(Base):
    __tablename__ = "dollar_rates"
    __table_args__ = (
        UniqueConstraint("date", "dollar_type", name="uq_dollar_rates_date_type"),
        Index("ix_dollar_rates_type_date", "dollar_type", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    dollar_type: Mapped[str] = mapped_column(String(20), nullable=False)
    buy_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    sell_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
