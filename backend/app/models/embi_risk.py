"""EmbiRisk ORM: riesgo país readings from the EMBI sheet.

Invariants:
    - external_id is the sheet row id and is unique; readings are never updated
    - closing_date stored in UTC
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Float, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class EmbiRisk(Base):
    __tablename__ = "embi_risk"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    external_id: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    closing_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True,
    )
    value: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
