from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MeasurementRecord(BaseModel):
    """A stored measurement row, detached from the ORM session."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    user_id: UUID
    measured_at: datetime
    weight_kg: float
    body_fat_pct: float | None = None
    body_water_pct: float | None = None
    muscle_mass_pct: float | None = None
    bone_mass_pct: float | None = None
    recommended_kcal: int | None = None
    bmi: float | None = None
    notes: str | None = None
    created_at: datetime | None = None


class MeasurementIn(BaseModel):
    measured_at: datetime | None = Field(None, description="ISO8601 timestamp, defaults to now")

    weight_kg: float = Field(..., ge=2, le=180)

    body_fat_pct: float | None = Field(None, ge=0, le=100)
    body_water_pct: float | None = Field(None, ge=0, le=100)
    muscle_mass_pct: float | None = Field(None, ge=0, le=100)
    bone_mass_pct: float | None = Field(None, ge=0, le=100)

    recommended_kcal: int | None = Field(None, ge=500, le=10000)
    bmi: float | None = Field(None, ge=10, le=90)

    notes: str | None = Field(None, max_length=500)

    @field_validator("notes")
    @classmethod
    def blank_notes_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v

    def to_row(self, owner_id: UUID) -> dict:
        """Values for an insert; measured_at falls back to now (UTC)."""
        values = self.model_dump()
        values["user_id"] = owner_id
        if values["measured_at"] is None:
            values["measured_at"] = datetime.now(timezone.utc)
        return values


class CollectionOut(BaseModel):
    owner_id: UUID | None
    page_size: int
    measurements: list[MeasurementRecord]
    latest: MeasurementRecord | None
    total_count: int
    has_more: bool
    pages_loaded: int
    is_loading: bool
    is_loading_more: bool
    error: str | None
