from fastapi import APIRouter, Depends

from app.api.deps import current_user_id, get_auth, require_auth
from app.core.auth import AuthContext
from app.schemas.auth import (
    ForgotPasswordIn,
    LoginIn,
    RegisterIn,
    ResetPasswordIn,
    SessionOut,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def _session(auth: AuthContext) -> SessionOut:
    user_id = auth.user_id
    return SessionOut(
        is_authenticated=auth.is_authenticated,
        loading=auth.loading,
        user_id=str(user_id) if user_id else None,
        email=auth.email,
        profile=auth.profile,
    )


@router.get("/session", response_model=SessionOut)
def get_session(auth: AuthContext = Depends(get_auth)):
    return _session(auth)


@router.post("/register", status_code=201)
def register(payload: RegisterIn, auth: AuthContext = Depends(require_auth)):
    user = auth.sign_up(
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        height_cm=payload.height_cm,
        birth_date=payload.birth_date,
        gender=payload.gender,
        activity_level=payload.activity_level,
    )
    return {"status": "ok", "user_id": str(user.id) if user else None}


@router.post("/login", response_model=SessionOut)
def login(payload: LoginIn, auth: AuthContext = Depends(require_auth)):
    auth.sign_in(payload.email, payload.password)
    return _session(auth)


@router.post("/logout", response_model=SessionOut, dependencies=[Depends(current_user_id)])
def logout(auth: AuthContext = Depends(require_auth)):
    auth.sign_out()
    return _session(auth)


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordIn, auth: AuthContext = Depends(require_auth)):
    auth.send_password_reset_email(payload.email)
    return {"status": "ok"}


@router.post("/reset-password", response_model=SessionOut)
def reset_password(payload: ResetPasswordIn, auth: AuthContext = Depends(require_auth)):
    """
    Set a new password. The recovery link's tokens may be passed along when
    the session was not picked up yet.
    """
    if payload.access_token and payload.refresh_token:
        auth.restore_session(payload.access_token, payload.refresh_token)
    auth.update_user_account(password=payload.password)
    return _session(auth)
