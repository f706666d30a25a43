# app/models/measurement.py

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, SmallInteger, String, Uuid

from app.core.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Measurement(Base):
    """
    One weigh-in from the bathroom scale.
    Only weight is guaranteed; the scale may report any subset of the rest.
    Rows are created or deleted, never updated.
    """

    __tablename__ = "measurements"
    __table_args__ = (
        Index("idx_measurements_user_date", "user_id", "measured_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    # When the measurement happened
    measured_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # Weight (sensor range 2 - 180 kg)
    weight_kg = Column(Float, nullable=False)

    # Composition, all percentages 0 - 100
    body_fat_pct = Column(Float)
    body_water_pct = Column(Float)
    muscle_mass_pct = Column(Float)
    bone_mass_pct = Column(Float)

    # Scale-derived
    recommended_kcal = Column(SmallInteger)   # 500 - 10000
    bmi = Column(Float)                       # 10 - 90

    notes = Column(String(500))

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
