from uuid import UUID

from fastapi import Depends, HTTPException, Request

from app.core.auth import AuthContext
from app.core.collection import CollectionRegistry
from app.core.errors import ForbiddenError, NotAuthenticatedError, NotFoundError
from app.core.store import MeasurementStore, ProfileStore


def get_auth(request: Request) -> AuthContext:
    return request.app.state.auth


def get_registry(request: Request) -> CollectionRegistry:
    registry = request.app.state.registry
    if registry is None:
        raise HTTPException(503, "DB not configured (POSTGRES_DSN missing)")
    return registry


def get_measurement_store(request: Request) -> MeasurementStore:
    store = request.app.state.measurements
    if store is None:
        raise HTTPException(503, "DB not configured (POSTGRES_DSN missing)")
    return store


def get_profile_store(request: Request) -> ProfileStore:
    profiles = request.app.state.profiles
    if profiles is None:
        raise HTTPException(503, "DB not configured (POSTGRES_DSN missing)")
    return profiles


def require_auth(auth: AuthContext = Depends(get_auth)) -> AuthContext:
    if not auth.is_configured:
        raise HTTPException(503, "Auth not configured (SUPABASE_URL missing)")
    return auth


def current_user_id(auth: AuthContext = Depends(get_auth)) -> UUID:
    user_id = auth.user_id
    if user_id is None:
        raise NotAuthenticatedError()
    return user_id


def resolve_owner(user_id: UUID | None, viewer_id: UUID, profiles: ProfileStore) -> UUID:
    """
    Whose measurements a request is about. Another member's data is only
    visible when their profile is shared with the family.
    """
    if user_id is None or user_id == viewer_id:
        return viewer_id

    profile = profiles.get(user_id)
    if profile is None:
        raise NotFoundError(f"Profile {user_id} not found")
    if not profile.is_public:
        raise ForbiddenError("This profile is private")
    return user_id
