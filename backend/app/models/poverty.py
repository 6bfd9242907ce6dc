"""PovertyData ORM: semester poverty and indigence rates.

Invariants:
    - date is the semester end, period is "S<s> <yyyy>"
    - Natural key (period, region); cuadro_source names the sheet the row was first read from
"""

import uuid
from datetime import date as date_type, datetime, timezone

from sqlalchemy import String, Float, Integer, Date, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class PovertyData(Base):
    __tablename__ = "poverty_data"
    __table_args__ = (
        UniqueConstraint("period", "region", name="uq_poverty_natural_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    period: Mapped[str] = mapped_column(String(10), nullable=False)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    data_type: Mapped[str] = mapped_column(String(20), nullable=False)
    region: Mapped[str] = mapped_column(String(60), nullable=False)
    cuadro_source: Mapped[str] = mapped_column(String(20), nullable=False)
    source_file: Mapped[str | None] = mapped_column(String(255), nullable=True)
    poverty_rate_persons: Mapped[float | None] = mapped_column(Float, nullable=True)
    poverty_rate_households: Mapped[float | None] = mapped_column(Float, nullable=True)
    indigence_rate_persons: Mapped[float | None] = mapped_column(Float, nullable=True)
    indigence_rate_households: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
