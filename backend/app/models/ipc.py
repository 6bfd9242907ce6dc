"""IPC ORM: consumer price index by component and region.

Invariants:
    - Natural key (date, component_code, region)
    - component_type in GENERAL | RUBRO | BYS | CATEGORIA
"""

import uuid
from datetime import date as date_type, datetime, timezone

from sqlalchemy import String, Float, Date, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Ipc(Base):
    __tablename__ = "ipc"
    __table_args__ = (
        UniqueConstraint("date", "component_code", "region", name="uq_ipc_date_code_region"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    component: Mapped[str] = mapped_column(String(200), nullable=False)
    component_code: Mapped[str] = mapped_column(String(40), nullable=False)
    component_type: Mapped[str] = mapped_column(String(20), nullable=False)
    region: Mapped[str] = mapped_column(String(40), nullable=False, default="Nacional")
    index_value: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
