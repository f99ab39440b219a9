from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from urllib.parse import quote

from app.core.config.course_catalog import get_course_catalog
from app.integrations.youtube import (
    SearchFilters,
    VideoCandidate,
    VideoSearch,
    VideoSearchUnavailable,
    format_duration,
    parse_iso8601_duration,
)
from app.schemas.career import Course
from app.services.career_errors import CourseLookupDegraded, InvalidQueryError

logger = logging.getLogger(__name__)

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
YOUTUBE_RESULTS_URL = "https://www.youtube.com/results?search_query={query}"

_COURSE_KEYWORDS = "full course tutorial"
_DESCRIPTION_MAX_CHARS = 200


def _clean(value: str | None) -> str:
    return " ".join((value or "").split())


def build_course_query(skill: str, career_goal: str) -> str:
    return f"{skill} {career_goal} {_COURSE_KEYWORDS}"


def generic_fallback_course(skill: str) -> Course:
    query = quote(f"{skill} tutorial course", safe="")
    return Course(
        title=f"{skill} Tutorial Course",
        url=YOUTUBE_RESULTS_URL.format(query=query),
        channel="YouTube Search",
        description=f"Browse YouTube tutorials and full courses for {skill}.",
    )


class CourseFinder:
    """Find course-like videos for a skill, degrading to a static catalog when search is down."""

    def __init__(
        self,
        video_search: VideoSearch | None,
        *,
        catalog: Mapping[str, Sequence[Course]] | None = None,
        max_results: int = 2,
        min_duration_seconds: int = 600,
        search_filters: SearchFilters | None = None,
    ):
        self._video_search = video_search
        source = get_course_catalog() if catalog is None else catalog
        self._catalog = {keyword.strip().lower(): tuple(courses) for keyword, courses in source.items()}
        self._max_results = max_results
        self._min_duration_seconds = min_duration_seconds
        self._search_filters = search_filters or SearchFilters()

    async def find_courses(self, skill: str, career_goal: str) -> list[Course]:
        skill = _clean(skill)
        career_goal = _clean(career_goal)
        if not skill or not career_goal:
            raise InvalidQueryError("Course lookup needs a non-empty skill and career goal.")

        if self._video_search is None:
            self._log_degraded(CourseLookupDegraded(skill=skill, reason="no_credential"))
            return self.fallback_courses(skill)

        try:
            candidates = await self._video_search.search(
                build_course_query(skill, career_goal),
                self._max_results,
                self._search_filters,
            )
        except Exception as exc:  # noqa: BLE001 - deterministic fallback is expected
            reason = "unavailable" if isinstance(exc, VideoSearchUnavailable) else "search_error"
            self._log_degraded(CourseLookupDegraded(skill=skill, reason=reason, detail=str(exc)))
            return self.fallback_courses(skill)

        courses = [self._to_course(candidate) for candidate in candidates if self._is_course_like(candidate)]
        logger.info(
            json.dumps(
                {
                    "event": "course_lookup",
                    "skill": skill,
                    "candidates": len(candidates),
                    "kept": len(courses),
                }
            )
        )
        return courses

    def fallback_courses(self, skill: str) -> list[Course]:
        lowered = _clean(skill).lower()
        for keyword, courses in self._catalog.items():
            if keyword in lowered:
                return list(courses)
        return [generic_fallback_course(_clean(skill))]

    def _is_course_like(self, candidate: VideoCandidate) -> bool:
        if not candidate.embeddable:
            return False
        seconds = parse_iso8601_duration(candidate.duration_iso8601)
        if seconds is None:
            return False
        return seconds >= 3600 or seconds > self._min_duration_seconds

    def _to_course(self, candidate: VideoCandidate) -> Course:
        seconds = parse_iso8601_duration(candidate.duration_iso8601)
        description = _clean(candidate.description)
        return Course(
            title=_clean(candidate.title) or "Untitled video",
            url=YOUTUBE_WATCH_URL.format(video_id=quote(candidate.id, safe="")),
            channel=_clean(candidate.channel_title) or "YouTube",
            duration=format_duration(seconds) if seconds is not None else None,
            description=description[:_DESCRIPTION_MAX_CHARS] or None,
        )

    @staticmethod
    def _log_degraded(signal: CourseLookupDegraded) -> None:
        logger.warning(
            json.dumps(
                {
                    "event": "course_lookup_degraded",
                    "skill": signal.skill,
                    "reason": signal.reason,
                    "detail": signal.detail[:300],
                }
            )
        )
