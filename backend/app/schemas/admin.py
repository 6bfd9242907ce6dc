"""Admin Schemas: request bodies for backfill and historical import endpoints."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BackfillDollarRequest(BaseModel):
    """Fill missing dollar days with the current quote."""
    model_config = ConfigDict(populate_by_name=True)

    days: int = Field(30, ge=1, le=365)
    dry_run: bool = Field(False, alias="dryRun")


class BackfillBcraRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    indices: list[Literal["CER", "UVA"]] = Field(default_factory=lambda: ["CER", "UVA"], min_length=1)
    date_from: date | None = Field(None, alias="from")
    date_to: date | None = Field(None, alias="to")

    @model_validator(mode="after")
    def check_range(self):
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("'from' must not be after 'to'")
        return self


class EmaeImportRequest(BaseModel):
    """Historical EMAE CSV upload; kind selects the general series or by-activity rows."""
    kind: Literal["general", "activity"] = "general"
    csv: str = Field(min_length=1, max_length=5_000_000)
    fill_adjusted: bool = True
