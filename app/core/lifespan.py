from contextlib import asynccontextmanager
import json
import logging

from app.ai.config import load_ai_config
from app.core.config import settings
from app.core.config.course_catalog import get_course_catalog

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    catalog = get_course_catalog()
    ai_config = load_ai_config()
    logger.info(
        json.dumps(
            {
                "event": "startup",
                "catalog_keywords": len(catalog),
                "video_search": bool(settings.youtube_api_key),
                "ai_provider": ai_config.provider,
                "ai_model": ai_config.model,
            }
        )
    )
    yield
