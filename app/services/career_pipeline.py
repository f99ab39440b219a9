from __future__ import annotations

import hashlib
import json
import logging
import time
from functools import lru_cache

from app.ai.factory import get_text_generator
from app.ai.types import TextGenerator
from app.core.config import settings
from app.core.config.course_catalog import get_course_catalog
from app.integrations.youtube import SearchFilters, YouTubeSearchClient
from app.schemas.career import CareerAnalysisResult
from app.services.career_errors import CareerPipelineError, RoadmapGenerationError
from app.services.course_finder import CourseFinder
from app.services.roadmap_composer import RoadmapComposer
from app.services.skill_gap_analyzer import SkillGapAnalyzer

logger = logging.getLogger("app.career")


def _short_hash(value: str | None) -> str:
    normalized = (value or "").strip()
    if not normalized:
        return ""
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:12]


def _elapsed_ms(started_at: float) -> int:
    return int((time.perf_counter() - started_at) * 1000)


class CareerPipeline:
    """Analysis, then roadmap. The roadmap prompt needs the finished analysis."""

    def __init__(self, analyzer: SkillGapAnalyzer, composer: RoadmapComposer):
        self._analyzer = analyzer
        self._composer = composer

    async def run_career_analysis(
        self, resume_text: str, career_goal: str, target_role: str | None = None
    ) -> CareerAnalysisResult:
        started_at = time.perf_counter()
        goal_hash = _short_hash(career_goal)

        try:
            analysis = await self._analyzer.analyze(resume_text, career_goal, target_role)
        except CareerPipelineError as exc:
            logger.warning(
                json.dumps(
                    {
                        "event": "career_analysis_failed",
                        "stage": "analysis",
                        "code": exc.code,
                        "goal_hash": goal_hash,
                        "duration_ms": _elapsed_ms(started_at),
                    }
                )
            )
            raise

        try:
            roadmap = await self._composer.compose_roadmap(analysis, " ".join(career_goal.split()))
        except RoadmapGenerationError as exc:
            if exc.analysis is None:
                exc.analysis = analysis
            logger.warning(
                json.dumps(
                    {
                        "event": "career_analysis_failed",
                        "stage": "roadmap",
                        "code": exc.code,
                        "goal_hash": goal_hash,
                        "duration_ms": _elapsed_ms(started_at),
                    }
                )
            )
            raise

        logger.info(
            json.dumps(
                {
                    "event": "career_analysis_complete",
                    "goal_hash": goal_hash,
                    "target_role": bool(target_role),
                    "overall_score": analysis.overall_score,
                    "roadmap_chars": len(roadmap),
                    "duration_ms": _elapsed_ms(started_at),
                }
            )
        )
        return CareerAnalysisResult(analysis=analysis, roadmap=roadmap)


@lru_cache(maxsize=1)
def build_course_finder() -> CourseFinder:
    video_search = None
    if settings.youtube_api_key:
        video_search = YouTubeSearchClient(
            settings.youtube_api_key, timeout_s=settings.video_search_timeout_s
        )
    return CourseFinder(
        video_search,
        catalog=get_course_catalog(),
        max_results=settings.course_max_results,
        min_duration_seconds=settings.course_min_duration_seconds,
        search_filters=SearchFilters(duration=settings.course_video_duration),
    )


@lru_cache(maxsize=1)
def build_text_generator() -> TextGenerator:
    return get_text_generator()


@lru_cache(maxsize=1)
def build_career_pipeline() -> CareerPipeline:
    generator = build_text_generator()
    analyzer = SkillGapAnalyzer(
        generator,
        build_course_finder(),
        min_resume_chars=settings.resume_min_chars,
        resume_prompt_max_chars=settings.resume_prompt_max_chars,
        course_lookup_timeout_s=settings.course_lookup_timeout_s,
    )
    return CareerPipeline(analyzer, RoadmapComposer(generator))
