"""
Remote data client for the hosted Postgres.

Every call opens its own session and returns pydantic records, so callers
never hold ORM objects across requests. Owner filters mirror the database's
row-level policies: a member only deletes or edits their own rows.
"""

import logging
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.errors import NotFoundError, RemoteError
from app.models.measurement import Measurement
from app.models.profile import Profile
from app.schemas.measurement import MeasurementRecord
from app.schemas.profile import ProfileRecord

log = logging.getLogger(__name__)


class MeasurementStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def fetch_page(
        self,
        owner_id: UUID,
        offset: int,
        limit: int,
    ) -> tuple[list[MeasurementRecord], int]:
        """
        One page of an owner's measurements, newest first, plus the owner's
        full count (independent of the page window).
        """
        db: Session = self._session_factory()
        try:
            query = db.query(Measurement).filter(Measurement.user_id == owner_id)
            total = query.count()
            rows = (
                query
                .order_by(Measurement.measured_at.desc(), Measurement.created_at.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
            return [MeasurementRecord.model_validate(r) for r in rows], total
        except SQLAlchemyError as e:
            raise RemoteError(f"Could not load measurements: {e.__class__.__name__}") from e
        finally:
            db.close()

    def insert(self, values: dict[str, Any]) -> MeasurementRecord:
        """Insert one row and return it as stored (server id and defaults included)."""
        db: Session = self._session_factory()
        try:
            entry = Measurement(**values)
            db.add(entry)
            db.commit()
            db.refresh(entry)
            return MeasurementRecord.model_validate(entry)
        except SQLAlchemyError as e:
            db.rollback()
            raise RemoteError(f"Could not save measurement: {e.__class__.__name__}") from e
        finally:
            db.close()

    def delete(self, owner_id: UUID, measurement_id: UUID) -> None:
        db: Session = self._session_factory()
        try:
            deleted = (
                db.query(Measurement)
                .filter(Measurement.id == measurement_id)
                .filter(Measurement.user_id == owner_id)
                .delete(synchronize_session=False)
            )
            if not deleted:
                db.rollback()
                raise NotFoundError(f"Measurement {measurement_id} not found")
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise RemoteError(f"Could not delete measurement: {e.__class__.__name__}") from e
        finally:
            db.close()

    def latest_per_owner(self, owner_ids: Iterable[UUID]) -> dict[UUID, MeasurementRecord]:
        """Newest measurement of each owner; owners without any are left out."""
        db: Session = self._session_factory()
        latest: dict[UUID, MeasurementRecord] = {}
        try:
            for owner_id in owner_ids:
                row = (
                    db.query(Measurement)
                    .filter(Measurement.user_id == owner_id)
                    .order_by(Measurement.measured_at.desc(), Measurement.created_at.desc())
                    .first()
                )
                if row is not None:
                    latest[owner_id] = MeasurementRecord.model_validate(row)
            return latest
        except SQLAlchemyError as e:
            raise RemoteError(f"Could not load latest measurements: {e.__class__.__name__}") from e
        finally:
            db.close()


class ProfileStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, profile_id: UUID) -> ProfileRecord | None:
        db: Session = self._session_factory()
        try:
            row = db.query(Profile).filter(Profile.id == profile_id).one_or_none()
            return ProfileRecord.model_validate(row) if row is not None else None
        except SQLAlchemyError as e:
            raise RemoteError(f"Could not load profile: {e.__class__.__name__}") from e
        finally:
            db.close()

    def update(self, profile_id: UUID, changes: dict[str, Any]) -> ProfileRecord:
        db: Session = self._session_factory()
        try:
            row = db.query(Profile).filter(Profile.id == profile_id).one_or_none()
            if row is None:
                raise NotFoundError(f"Profile {profile_id} not found")

            for field, value in changes.items():
                setattr(row, field, value)

            db.commit()
            db.refresh(row)
            return ProfileRecord.model_validate(row)
        except SQLAlchemyError as e:
            db.rollback()
            raise RemoteError(f"Could not update profile: {e.__class__.__name__}") from e
        finally:
            db.close()

    def list_visible(self, viewer_id: UUID) -> list[ProfileRecord]:
        """The viewer's own profile plus every profile shared with the family."""
        db: Session = self._session_factory()
        try:
            rows = (
                db.query(Profile)
                .filter((Profile.is_public.is_(True)) | (Profile.id == viewer_id))
                .order_by(Profile.full_name)
                .all()
            )
            return [ProfileRecord.model_validate(r) for r in rows]
        except SQLAlchemyError as e:
            raise RemoteError(f"Could not load family profiles: {e.__class__.__name__}") from e
        finally:
            db.close()
