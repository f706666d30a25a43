"""
Paginated, newest-first view of one member's measurements.

A MeasurementCollection keeps the loaded rows, the owner's total count and
two busy flags. Inserts and deletes are applied locally after the remote
store confirms them, so the view stays consistent without a refetch.

The pagination cursor is the number of rows already loaded. Because local
inserts and deletes move that number together with the remote list, a
"load more" after a mutation neither repeats nor skips rows.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import UUID

from app.core.config import settings
from app.core.errors import RemoteError
from app.schemas.measurement import MeasurementIn, MeasurementRecord

log = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Could not load measurements"


class RemoteMeasurements(Protocol):
    def fetch_page(self, owner_id: UUID, offset: int, limit: int) -> tuple[list[MeasurementRecord], int]: ...

    def insert(self, values: dict[str, Any]) -> MeasurementRecord: ...

    def delete(self, owner_id: UUID, measurement_id: UUID) -> None: ...


def _sort_key(record: MeasurementRecord) -> datetime:
    ts = record.measured_at
    if ts.tzinfo is None:
        # naive timestamps come back from backends that drop the offset; they are UTC
        return ts.replace(tzinfo=timezone.utc)
    return ts


class MeasurementCollection:
    def __init__(
        self,
        store: RemoteMeasurements,
        owner_id: UUID | None = None,
        page_size: int | None = None,
    ):
        page_size = page_size or settings.MEASUREMENTS_PAGE_SIZE
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        self._store = store
        self._owner_id = owner_id
        self.page_size = page_size

        self._lock = threading.Lock()
        self._measurements: list[MeasurementRecord] = []
        self._total_count = 0
        self._pages_loaded = 0
        self._is_loading = False
        self._is_loading_more = False
        self._error: str | None = None
        self._loaded = False
        # bumped whenever results of in-flight loads must be dropped
        self._generation = 0

    # ---------- state ----------

    @property
    def owner_id(self) -> UUID | None:
        return self._owner_id

    @property
    def measurements(self) -> tuple[MeasurementRecord, ...]:
        return tuple(self._measurements)

    @property
    def latest(self) -> MeasurementRecord | None:
        return self._measurements[0] if self._measurements else None

    @property
    def total_count(self) -> int:
        return self._total_count

    @property
    def has_more(self) -> bool:
        return len(self._measurements) < self._total_count

    @property
    def pages_loaded(self) -> int:
        return self._pages_loaded

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_loading_more(self) -> bool:
        return self._is_loading_more

    @property
    def is_busy(self) -> bool:
        return self._is_loading or self._is_loading_more

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def loaded(self) -> bool:
        """True once a fetch has settled successfully for the current owner."""
        return self._loaded

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            measurements = list(self._measurements)
            return {
                "owner_id": self._owner_id,
                "page_size": self.page_size,
                "measurements": measurements,
                "latest": measurements[0] if measurements else None,
                "total_count": self._total_count,
                "has_more": len(measurements) < self._total_count,
                "pages_loaded": self._pages_loaded,
                "is_loading": self._is_loading,
                "is_loading_more": self._is_loading_more,
                "error": self._error,
            }

    # ---------- loading ----------

    def load(self, reset: bool = False) -> bool:
        """
        Fetch one page. reset=True starts over from the newest row, otherwise
        the page after the loaded rows is appended.

        Returns False without touching the store when there is no owner or a
        load is already in flight. Remote failures end up in ``error``; the
        loaded rows are left as they were.
        """
        with self._lock:
            owner_id = self._owner_id
            if owner_id is None:
                return False
            if self._is_loading or self._is_loading_more:
                log.debug("load skipped for %s: another load is in flight", owner_id)
                return False

            if reset:
                self._is_loading = True
            else:
                self._is_loading_more = True
            self._error = None
            generation = self._generation
            offset = 0 if reset else len(self._measurements)

        try:
            rows, total = self._store.fetch_page(owner_id, offset, self.page_size)
        except RemoteError as e:
            log.warning("fetching measurements for %s failed: %s", owner_id, e.message)
            with self._lock:
                if generation == self._generation:
                    self._is_loading = self._is_loading_more = False
                    self._error = e.message or LOAD_ERROR_MESSAGE
            return False
        except Exception:
            with self._lock:
                if generation == self._generation:
                    self._is_loading = self._is_loading_more = False
            raise

        with self._lock:
            if generation != self._generation:
                log.debug("dropping stale page for %s", owner_id)
                return False

            self._is_loading = self._is_loading_more = False
            if reset:
                self._measurements = list(rows)
                self._pages_loaded = 1
            else:
                known = {m.id for m in self._measurements}
                self._measurements.extend(r for r in rows if r.id not in known)
                self._pages_loaded += 1

            # rows may have been deleted elsewhere between two pages
            self._total_count = max(total, len(self._measurements))
            self._loaded = True

        log.debug(
            "loaded %d measurements for %s (%d/%d)",
            len(rows), owner_id, len(self._measurements), self._total_count,
        )
        return True

    def load_more(self) -> bool:
        return self.load(reset=False)

    def refresh(self) -> bool:
        return self.load(reset=True)

    def set_owner(self, owner_id: UUID | None) -> bool:
        """
        Point the collection at another member. The loaded state is dropped
        and the first page of the new owner is fetched right away.
        """
        with self._lock:
            if owner_id == self._owner_id:
                return False
            self._owner_id = owner_id
            self._reset_locked()

        if owner_id is None:
            return False
        return self.refresh()

    def close(self) -> None:
        """Forget all state; pages still in flight are dropped when they arrive."""
        with self._lock:
            self._reset_locked()

    def _reset_locked(self) -> None:
        self._generation += 1
        self._measurements = []
        self._total_count = 0
        self._pages_loaded = 0
        self._is_loading = False
        self._is_loading_more = False
        self._error = None
        self._loaded = False

    # ---------- mutations ----------

    def create(self, payload: MeasurementIn) -> MeasurementRecord:
        """
        Store a new measurement for the owner and add it to the loaded rows.
        Remote failures propagate to the caller and leave the state untouched.
        """
        owner_id = self._owner_id
        if owner_id is None:
            raise ValueError("collection has no owner")

        record = self._store.insert(payload.to_row(owner_id))
        self.apply_created(record)
        log.info("created measurement %s for %s", record.id, owner_id)
        return record

    def remove(self, measurement_id: UUID) -> None:
        owner_id = self._owner_id
        if owner_id is None:
            raise ValueError("collection has no owner")

        self._store.delete(owner_id, measurement_id)
        self.apply_removed(measurement_id)
        log.info("deleted measurement %s for %s", measurement_id, owner_id)

    def apply_created(self, record: MeasurementRecord) -> None:
        """
        Merge a row the store just accepted. It normally is the newest row and
        goes first; a backdated row takes its sorted place, or is left for a
        later page when it is older than everything loaded so far.
        """
        with self._lock:
            if record.user_id != self._owner_id:
                return

            key = _sort_key(record)
            rows = self._measurements
            if not rows or key >= _sort_key(rows[0]):
                rows.insert(0, record)
            elif key >= _sort_key(rows[-1]) or len(rows) >= self._total_count:
                index = next(
                    (i for i, m in enumerate(rows) if _sort_key(m) <= key),
                    len(rows),
                )
                rows.insert(index, record)
            self._total_count += 1

    def apply_removed(self, measurement_id: UUID) -> None:
        with self._lock:
            self._measurements = [m for m in self._measurements if m.id != measurement_id]
            self._total_count = max(self._total_count - 1, 0)


class CollectionRegistry:
    """
    One collection per (owner, page size). Mutations made through one of an
    owner's collections are mirrored into the others.
    """

    def __init__(self, store: RemoteMeasurements, default_page_size: int | None = None):
        self._store = store
        self.default_page_size = default_page_size or settings.MEASUREMENTS_PAGE_SIZE
        self._collections: dict[tuple[UUID, int], MeasurementCollection] = {}
        self._lock = threading.Lock()

    def get(self, owner_id: UUID, page_size: int | None = None) -> MeasurementCollection:
        key = (owner_id, page_size or self.default_page_size)
        with self._lock:
            collection = self._collections.get(key)
            if collection is None:
                collection = MeasurementCollection(self._store, owner_id=key[0], page_size=key[1])
                self._collections[key] = collection
            return collection

    def _siblings(self, collection: MeasurementCollection) -> list[MeasurementCollection]:
        with self._lock:
            return [
                c for (owner_id, _), c in self._collections.items()
                if owner_id == collection.owner_id and c is not collection
            ]

    def create(self, owner_id: UUID, payload: MeasurementIn, page_size: int | None = None) -> MeasurementRecord:
        collection = self.get(owner_id, page_size)
        record = collection.create(payload)
        for other in self._siblings(collection):
            other.apply_created(record)
        return record

    def remove(self, owner_id: UUID, measurement_id: UUID, page_size: int | None = None) -> None:
        collection = self.get(owner_id, page_size)
        collection.remove(measurement_id)
        for other in self._siblings(collection):
            other.apply_removed(measurement_id)

    def discard(self, owner_id: UUID) -> None:
        with self._lock:
            keys = [k for k in self._collections if k[0] == owner_id]
            dropped = [self._collections.pop(k) for k in keys]
        for collection in dropped:
            collection.close()

    def clear(self) -> None:
        with self._lock:
            dropped = list(self._collections.values())
            self._collections.clear()
        for collection in dropped:
            collection.close()
        if dropped:
            log.info("cleared %d measurement collections", len(dropped))
