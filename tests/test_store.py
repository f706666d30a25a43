"""
SQLAlchemy-backed store against an in-memory SQLite database.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app.core.db import make_session_factory
from app.core.errors import NotFoundError, RemoteError
from app.core.store import MeasurementStore, ProfileStore

UTC = timezone.utc
START = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)


def row(owner_id, measured_at, weight_kg=70.0, **extra):
    return {"user_id": owner_id, "measured_at": measured_at, "weight_kg": weight_kg, **extra}


class TestMeasurementStore:
    def test_insert_returns_stored_row(self, session_factory, add_profile):
        owner = add_profile()
        store = MeasurementStore(session_factory)

        record = store.insert(row(owner, START, weight_kg=68.2, bmi=23.1, notes="after run"))

        assert isinstance(record.id, uuid.UUID)
        assert record.user_id == owner
        assert record.weight_kg == 68.2
        assert record.bmi == 23.1
        assert record.body_fat_pct is None
        assert record.created_at is not None

    def test_insert_defaults_measured_at(self, session_factory, add_profile):
        owner = add_profile()
        store = MeasurementStore(session_factory)
        record = store.insert({"user_id": owner, "weight_kg": 70.0})
        assert record.measured_at is not None

    def test_fetch_page_is_newest_first_with_total(self, session_factory, add_profile):
        owner = add_profile()
        store = MeasurementStore(session_factory)
        for i in range(7):
            store.insert(row(owner, START + timedelta(days=i), weight_kg=70 + i))

        first, total = store.fetch_page(owner, 0, 3)
        second, _ = store.fetch_page(owner, 3, 3)
        last, _ = store.fetch_page(owner, 6, 3)

        assert total == 7
        assert [r.weight_kg for r in first] == [76, 75, 74]
        assert [r.weight_kg for r in second] == [73, 72, 71]
        assert [r.weight_kg for r in last] == [70]

    def test_fetch_page_only_sees_owner_rows(self, session_factory, add_profile):
        mine, theirs = add_profile(), add_profile("Luis Perez")
        store = MeasurementStore(session_factory)
        store.insert(row(mine, START))
        store.insert(row(theirs, START))
        store.insert(row(theirs, START + timedelta(days=1)))

        rows, total = store.fetch_page(mine, 0, 10)
        assert total == 1
        assert all(r.user_id == mine for r in rows)

    def test_delete_own_row(self, session_factory, add_profile):
        owner = add_profile()
        store = MeasurementStore(session_factory)
        record = store.insert(row(owner, START))

        store.delete(owner, record.id)
        assert store.fetch_page(owner, 0, 10) == ([], 0)

    def test_delete_someone_elses_row_is_not_found(self, session_factory, add_profile):
        owner, other = add_profile(), add_profile("Luis Perez")
        store = MeasurementStore(session_factory)
        record = store.insert(row(owner, START))

        with pytest.raises(NotFoundError):
            store.delete(other, record.id)
        assert store.fetch_page(owner, 0, 10)[1] == 1

    def test_latest_per_owner(self, session_factory, add_profile):
        a, b, c = add_profile("A"), add_profile("B"), add_profile("C")
        store = MeasurementStore(session_factory)
        store.insert(row(a, START, weight_kg=60))
        store.insert(row(a, START + timedelta(days=2), weight_kg=61))
        store.insert(row(b, START, weight_kg=80))

        latest = store.latest_per_owner([a, b, c])
        assert latest[a].weight_kg == 61
        assert latest[b].weight_kg == 80
        assert c not in latest

    def test_database_errors_become_remote_errors(self):
        # no tables created: every query fails
        store = MeasurementStore(make_session_factory("sqlite://"))
        with pytest.raises(RemoteError):
            store.fetch_page(uuid.uuid4(), 0, 10)


class TestProfileStore:
    def test_get_missing_profile(self, session_factory):
        assert ProfileStore(session_factory).get(uuid.uuid4()) is None

    def test_update_profile(self, session_factory, add_profile):
        owner = add_profile()
        profiles = ProfileStore(session_factory)

        updated = profiles.update(owner, {"full_name": "Ana María Perez", "is_public": True})
        assert updated.full_name == "Ana María Perez"
        assert updated.is_public is True
        assert profiles.get(owner).is_public is True

    def test_update_missing_profile(self, session_factory):
        with pytest.raises(NotFoundError):
            ProfileStore(session_factory).update(uuid.uuid4(), {"full_name": "Nobody"})

    def test_list_visible_has_public_profiles_and_viewer(self, session_factory, add_profile):
        viewer = add_profile("Ana", is_public=False)
        add_profile("Bea", is_public=True)
        add_profile("Carlos", is_public=False)

        names = [p.full_name for p in ProfileStore(session_factory).list_visible(viewer)]
        assert names == ["Ana", "Bea"]


class TestSessionFactory:
    def test_in_memory_database_is_shared_between_sessions(self, add_profile, session_factory):
        owner = add_profile("Ana")
        first, second = session_factory(), session_factory()
        try:
            assert first.get_bind() is second.get_bind()
            assert ProfileStore(session_factory).get(owner).full_name == "Ana"
        finally:
            first.close()
            second.close()

    def test_records_stay_readable_after_commit(self, session_factory, add_profile):
        store = MeasurementStore(session_factory)
        record = store.insert(row(add_profile(), START, weight_kg=64.0))
        assert record.weight_kg == 64.0
        assert session_factory.kw["expire_on_commit"] is False
