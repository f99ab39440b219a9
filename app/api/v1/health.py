from fastapi import APIRouter

from app.ai.config import load_ai_config
from app.core.config import settings

router = APIRouter()


@router.get("/health", summary="Health Check", description="Report service health and which providers are configured.")
async def health_check():
    return {
        "status": "healthy",
        "aiProvider": load_ai_config().provider,
        "videoSearch": bool(settings.youtube_api_key),
    }
