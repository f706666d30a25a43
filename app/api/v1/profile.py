from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import current_user_id, get_auth, require_auth
from app.core.activity import activity_level_options
from app.core.auth import AuthContext
from app.schemas.auth import AccountUpdate
from app.schemas.profile import PrivacyUpdate, ProfileRecord, ProfileUpdate

router = APIRouter(tags=["profile"])


@router.get("/profile", response_model=ProfileRecord, dependencies=[Depends(current_user_id)])
def get_profile(auth: AuthContext = Depends(get_auth)):
    profile = auth.profile or auth.refresh_profile()
    if profile is None:
        raise HTTPException(404, "Profile not found")
    return profile


@router.patch("/profile", response_model=ProfileRecord, dependencies=[Depends(current_user_id)])
def update_profile(payload: ProfileUpdate, auth: AuthContext = Depends(get_auth)):
    changes = payload.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(400, "Nothing to update")
    return auth.update_user_profile(changes)


@router.patch("/profile/privacy", response_model=ProfileRecord, dependencies=[Depends(current_user_id)])
def update_privacy(payload: PrivacyUpdate, auth: AuthContext = Depends(get_auth)):
    return auth.update_user_profile({"is_public": payload.is_public})


@router.patch("/profile/account", dependencies=[Depends(current_user_id)])
def update_account(payload: AccountUpdate, auth: AuthContext = Depends(require_auth)):
    user = auth.update_user_account(email=payload.email, password=payload.password)
    return {"status": "ok", "email": getattr(user, "email", payload.email)}


@router.get("/activity-levels")
def list_activity_levels():
    return {"status": "ok", "options": activity_level_options()}
