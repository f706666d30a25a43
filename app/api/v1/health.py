from fastapi import APIRouter, Request

from app.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "db": request.app.state.measurements is not None,
        "auth": request.app.state.auth.is_configured,
    }
