from datetime import datetime

from fastapi import APIRouter, Request

from wellbeing.api.rate_limit import limiter
from wellbeing.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
@limiter.exempt
def health(request: Request):
    return {
        "status": "success",
        "message": "Server is healthy",
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/info")
@limiter.exempt
def info(request: Request):
    return {
        "status": "success",
        "data": {
            "name": settings.app_name,
            "version": "1.0.0",
            "environment": settings.environment,
            "api_version": settings.api_version,
        },
    }
