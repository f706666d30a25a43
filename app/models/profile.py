# app/models/profile.py

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Float, SmallInteger, String, Uuid

from app.core.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    """
    Extended profile of a family member.
    The id is the auth provider's user id; the row is created by the
    provider's sign-up trigger from the metadata sent with sign_up().
    """

    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    full_name = Column(String, nullable=False)
    height_cm = Column(Float, nullable=False)        # 50 - 200
    birth_date = Column(Date, nullable=False)
    gender = Column(String(16), nullable=False)      # "masculino" | "femenino"
    activity_level = Column(SmallInteger, nullable=False, default=1)  # AC-1 .. AC-6

    # Privacy switch: when true the rest of the family can see this member's weigh-ins
    is_public = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
