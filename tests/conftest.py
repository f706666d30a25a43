import threading
import uuid
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from supabase import AuthError

from app import models  # noqa: F401
from app.core.db import Base, make_session_factory
from app.core.errors import NotFoundError, RemoteError
from app.models.profile import Profile
from app.schemas.measurement import MeasurementRecord

UTC = timezone.utc
START = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)


def make_record(owner_id, measured_at, weight_kg=70.0, **extra) -> MeasurementRecord:
    return MeasurementRecord(
        id=uuid.uuid4(),
        user_id=owner_id,
        measured_at=measured_at,
        weight_kg=weight_kg,
        created_at=measured_at,
        **extra,
    )


class FakeStore:
    """In-memory stand-in for MeasurementStore."""

    def __init__(self):
        self.rows: list[MeasurementRecord] = []
        self.fetch_calls: list[tuple] = []
        self.fail_with: Exception | None = None
        # when set, fetch_page waits for it (to hold a load in flight)
        self.gate: threading.Event | None = None
        self.entered = threading.Event()

    def seed(self, owner_id, count, start=START, step=timedelta(days=1)) -> list[MeasurementRecord]:
        seeded = [
            make_record(owner_id, start + i * step, weight_kg=round(70 + i * 0.1, 1))
            for i in range(count)
        ]
        self.rows.extend(seeded)
        return seeded

    def _owned(self, owner_id):
        return sorted(
            (r for r in self.rows if r.user_id == owner_id),
            key=lambda r: r.measured_at,
            reverse=True,
        )

    def fetch_page(self, owner_id, offset, limit):
        self.fetch_calls.append((owner_id, offset, limit))
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.fail_with is not None:
            raise self.fail_with
        owned = self._owned(owner_id)
        return owned[offset:offset + limit], len(owned)

    def insert(self, values):
        if self.fail_with is not None:
            raise self.fail_with
        record = MeasurementRecord(id=uuid.uuid4(), created_at=datetime.now(UTC), **values)
        self.rows.append(record)
        return record

    def delete(self, owner_id, measurement_id):
        if self.fail_with is not None:
            raise self.fail_with
        for r in self.rows:
            if r.id == measurement_id and r.user_id == owner_id:
                self.rows.remove(r)
                return
        raise NotFoundError(f"Measurement {measurement_id} not found")


class ProviderError(AuthError):
    def __init__(self, message):
        Exception.__init__(self, message)
        self.message = message


class FakeSubscription:
    def __init__(self, client, callback):
        self._client = client
        self._callback = callback

    def unsubscribe(self):
        if self._callback in self._client.callbacks:
            self._client.callbacks.remove(self._callback)


class FakeAuthClient:
    """Mimics the parts of supabase's sync auth client the app uses."""

    def __init__(self):
        self.callbacks = []
        self.session = None
        self.accounts: dict[str, tuple[str, SimpleNamespace]] = {}
        self.sign_up_calls = []
        self.reset_calls = []
        self.update_calls = []

    def add_account(self, email, password, user_id=None):
        user = SimpleNamespace(id=str(user_id or uuid.uuid4()), email=email)
        self.accounts[email] = (password, user)
        return user

    def _emit(self, event, session):
        for cb in list(self.callbacks):
            cb(event, session)

    def on_auth_state_change(self, callback):
        self.callbacks.append(callback)
        return FakeSubscription(self, callback)

    def get_session(self):
        return self.session

    def sign_up(self, credentials):
        self.sign_up_calls.append(credentials)
        if credentials["email"] in self.accounts:
            raise ProviderError("User already registered")
        user = self.add_account(credentials["email"], credentials["password"])
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, credentials):
        account = self.accounts.get(credentials["email"])
        if account is None or account[0] != credentials["password"]:
            raise ProviderError("Invalid login credentials")
        self.session = SimpleNamespace(user=account[1], access_token="access", refresh_token="refresh")
        self._emit("SIGNED_IN", self.session)
        return SimpleNamespace(user=account[1], session=self.session)

    def sign_out(self):
        self.session = None
        self._emit("SIGNED_OUT", None)

    def set_session(self, access_token, refresh_token):
        if self.session is None:
            raise ProviderError("Invalid session")
        self._emit("TOKEN_REFRESHED", self.session)
        return SimpleNamespace(user=self.session.user, session=self.session)

    def reset_password_for_email(self, email, options=None):
        self.reset_calls.append((email, options))

    def update_user(self, attributes):
        self.update_calls.append(attributes)
        user = self.session.user
        if "email" in attributes:
            user = SimpleNamespace(id=user.id, email=attributes["email"])
            self.session.user = user
        return SimpleNamespace(user=user)


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def session_factory():
    factory = make_session_factory("sqlite://")
    engine = factory.kw["bind"]
    Base.metadata.create_all(bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def add_profile(session_factory):
    def _add(full_name="Ana Perez", is_public=False, profile_id=None, **extra):
        db = session_factory()
        try:
            profile = Profile(
                id=profile_id or uuid.uuid4(),
                full_name=full_name,
                height_cm=extra.pop("height_cm", 165.0),
                birth_date=extra.pop("birth_date", date(1990, 5, 17)),
                gender=extra.pop("gender", "femenino"),
                activity_level=extra.pop("activity_level", 2),
                is_public=is_public,
            )
            db.add(profile)
            db.commit()
            return profile.id
        finally:
            db.close()

    return _add


@pytest.fixture
def failing_remote():
    return RemoteError("Could not load measurements: OperationalError")
