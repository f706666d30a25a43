# app/api/v1/measurements.py

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import (
    current_user_id,
    get_profile_store,
    get_registry,
    resolve_owner,
)
from app.core.charts import CHART_METRICS, axis_bounds, build_chart_data, weight_delta
from app.core.collection import CollectionRegistry, MeasurementCollection
from app.core.config import settings
from app.core.store import ProfileStore
from app.schemas.chart import ChartOut
from app.schemas.measurement import CollectionOut, MeasurementIn, MeasurementRecord

router = APIRouter(prefix="/measurements", tags=["measurements"])


def _collection(
    user_id: UUID | None,
    page_size: int | None,
    viewer_id: UUID,
    registry: CollectionRegistry,
    profiles: ProfileStore,
) -> MeasurementCollection:
    owner_id = resolve_owner(user_id, viewer_id, profiles)
    return registry.get(owner_id, page_size)


# ---------- Collection state ----------

@router.get("", response_model=CollectionOut)
def list_measurements(
    user_id: UUID | None = None,
    page_size: int | None = Query(None, ge=1, le=100),
    viewer_id: UUID = Depends(current_user_id),
    registry: CollectionRegistry = Depends(get_registry),
    profiles: ProfileStore = Depends(get_profile_store),
):
    """
    Loaded measurements of a member (the viewer by default), newest first.
    The first page is fetched the first time a collection is asked for.
    """
    collection = _collection(user_id, page_size, viewer_id, registry, profiles)
    if not collection.loaded:
        collection.refresh()
    return collection.snapshot()


@router.post("/refresh", response_model=CollectionOut)
def refresh_measurements(
    user_id: UUID | None = None,
    page_size: int | None = Query(None, ge=1, le=100),
    viewer_id: UUID = Depends(current_user_id),
    registry: CollectionRegistry = Depends(get_registry),
    profiles: ProfileStore = Depends(get_profile_store),
):
    collection = _collection(user_id, page_size, viewer_id, registry, profiles)
    collection.refresh()
    return collection.snapshot()


@router.post("/more", response_model=CollectionOut)
def load_more_measurements(
    user_id: UUID | None = None,
    page_size: int | None = Query(None, ge=1, le=100),
    viewer_id: UUID = Depends(current_user_id),
    registry: CollectionRegistry = Depends(get_registry),
    profiles: ProfileStore = Depends(get_profile_store),
):
    """Append the next page. Ignored while another load is running."""
    collection = _collection(user_id, page_size, viewer_id, registry, profiles)
    if not collection.loaded:
        collection.refresh()
    elif collection.has_more:
        collection.load_more()
    return collection.snapshot()


# ---------- Mutations (own measurements only) ----------

@router.post("", response_model=MeasurementRecord, status_code=201)
def create_measurement(
    payload: MeasurementIn,
    viewer_id: UUID = Depends(current_user_id),
    registry: CollectionRegistry = Depends(get_registry),
):
    return registry.create(viewer_id, payload)


@router.delete("/{measurement_id}")
def delete_measurement(
    measurement_id: UUID,
    viewer_id: UUID = Depends(current_user_id),
    registry: CollectionRegistry = Depends(get_registry),
):
    registry.remove(viewer_id, measurement_id)
    return {"status": "ok", "deleted": str(measurement_id)}


# ---------- Chart ----------

@router.get("/chart", response_model=ChartOut)
def get_chart(
    user_id: UUID | None = None,
    metric: str = "weight_kg",
    max_days: int = Query(settings.CHART_MAX_DAYS, ge=1, le=365),
    bucket: bool = True,
    page_size: int | None = Query(None, ge=1, le=100),
    viewer_id: UUID = Depends(current_user_id),
    registry: CollectionRegistry = Depends(get_registry),
    profiles: ProfileStore = Depends(get_profile_store),
):
    """
    Series of one metric over the loaded measurements, oldest first.
    Same-day readings are averaged unless bucket=false.
    """
    if metric not in CHART_METRICS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown metric '{metric}', expected one of: {', '.join(CHART_METRICS)}",
        )

    collection = _collection(user_id, page_size, viewer_id, registry, profiles)
    if not collection.loaded:
        collection.refresh()

    points = build_chart_data(
        collection.measurements,
        max_points=max_days,
        metric=metric,
        bucket_by_day=bucket,
    )
    return ChartOut(
        metric=metric,
        points=points,
        delta=weight_delta(points),
        bounds=axis_bounds(points),
    )
