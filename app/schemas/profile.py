from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.measurement import MeasurementRecord

Gender = Literal["masculino", "femenino"]


def ensure_past_date(v: date | None) -> date | None:
    if v is not None and v >= date.today():
        raise ValueError("birth_date must be in the past")
    return v


class ProfileRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    full_name: str
    height_cm: float
    birth_date: date
    gender: str
    activity_level: int = 1
    is_public: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(None, min_length=2)
    height_cm: float | None = Field(None, ge=50, le=200)
    birth_date: date | None = None
    gender: Gender | None = None
    activity_level: int | None = Field(None, ge=1, le=6)

    @field_validator("birth_date")
    @classmethod
    def birth_date_in_past(cls, v: date | None) -> date | None:
        return ensure_past_date(v)


class PrivacyUpdate(BaseModel):
    is_public: bool


class FamilyMember(BaseModel):
    profile: ProfileRecord
    latest: MeasurementRecord | None
    is_self: bool = False
