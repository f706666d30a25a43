from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.deps import current_user_id, get_auth, get_registry
from app.core.auth import AuthContext
from app.core.charts import axis_bounds, build_chart_data, weight_delta
from app.core.collection import CollectionRegistry
from app.core.config import settings

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
def get_dashboard(
    viewer_id: UUID = Depends(current_user_id),
    auth: AuthContext = Depends(get_auth),
    registry: CollectionRegistry = Depends(get_registry),
):
    """
    Home screen of the signed-in member: latest weigh-in, weight chart over
    the loaded measurements and the change across that chart.
    """
    collection = registry.get(viewer_id)
    if not collection.loaded:
        collection.refresh()

    points = build_chart_data(collection.measurements, max_points=settings.CHART_MAX_DAYS)

    return {
        "full_name": auth.profile.full_name if auth.profile else None,
        "total_count": collection.total_count,
        "latest": collection.latest,
        "chart": points,
        "weight_delta": weight_delta(points),
        "bounds": axis_bounds(points),
        "error": collection.error,
    }
