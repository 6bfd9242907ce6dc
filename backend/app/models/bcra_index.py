"""CER / UVA ORM: BCRA daily adjustment indices, one value per date."""

import uuid
from datetime import date as date_type, datetime, timezone

from sqlalchemy import Float, Date, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.core.domain_types import BcraIndex
from app.db.base import Base


class _IndexColumns:
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    date: Mapped[date_type] = mapped_column(Date, nullable=False, unique=True)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


class Cer(_IndexColumns, Base):
    __tablename__ = "cer"


class Uva(_IndexColumns, Base):
    __tablename__ = "uva"


INDEX_MODELS = {BcraIndex.CER: Cer, BcraIndex.UVA: Uva}
