from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.deps import current_user_id, get_measurement_store, get_profile_store
from app.core.store import MeasurementStore, ProfileStore
from app.schemas.profile import FamilyMember

router = APIRouter(tags=["family"])


@router.get("/family", response_model=list[FamilyMember])
def get_family(
    viewer_id: UUID = Depends(current_user_id),
    profiles: ProfileStore = Depends(get_profile_store),
    measurements: MeasurementStore = Depends(get_measurement_store),
):
    """
    Members who share their weigh-ins, each with their latest measurement.
    The viewer is always listed first.
    """
    members = profiles.list_visible(viewer_id)
    latest = measurements.latest_per_owner(p.id for p in members)

    rows = [
        FamilyMember(profile=p, latest=latest.get(p.id), is_self=p.id == viewer_id)
        for p in members
    ]
    rows.sort(key=lambda m: not m.is_self)
    return rows
