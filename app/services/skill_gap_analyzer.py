from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Union

from pydantic import ValidationError

from app.ai.types import TextGenerationError, TextGenerator
from app.schemas.career import (
    Course,
    Recommendation,
    RecommendationDraft,
    SkillGapAnalysis,
    SkillGapDraft,
)
from app.services.career_errors import (
    AnalysisError,
    AnalysisParseError,
    InvalidInputError,
    InvalidQueryError,
)
from app.services.course_finder import CourseFinder

logger = logging.getLogger(__name__)

ANALYSIS_OUTPUT_SCHEMA = SkillGapDraft.model_json_schema(by_alias=True)

_OPEN_FENCE_RE = re.compile(r"^```[A-Za-z]*\s*")
_CLOSE_FENCE_RE = re.compile(r"\s*```$")

_ANALYSIS_PROMPT = """Analyze this resume against the career goal.

Resume:
{resume}

Career goal: {career_goal}
{target_role_line}
Return JSON only, with exactly these keys:
{{
  "currentSkills": ["skills evidenced in the resume"],
  "requiredSkills": ["skills the goal and target role require"],
  "skillGaps": ["required skills not evidenced in the resume"],
  "experience": "one-line experience level summary",
  "recommendations": [
    {{"skill": "skill to learn", "priority": "High | Medium | Low", "description": "why it matters and how to start, max 25 words"}}
  ],
  "overallScore": <integer 0-100, readiness for the career goal>
}}
List recommendations from most to least important."""


@dataclass(frozen=True)
class Parsed:
    value: SkillGapDraft


@dataclass(frozen=True)
class ParseFailure:
    reason: str


ParseResult = Union[Parsed, ParseFailure]


def _clean(value: str | None) -> str:
    return " ".join((value or "").split())


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _CLOSE_FENCE_RE.sub("", _OPEN_FENCE_RE.sub("", cleaned))
    return cleaned.strip()


def _summarize_validation_error(exc: ValidationError, limit: int = 5) -> str:
    parts = []
    for error in exc.errors()[:limit]:
        location = ".".join(str(item) for item in error.get("loc", ())) or "payload"
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(parts)


def parse_analysis_response(raw: str | None) -> ParseResult:
    """Validate raw generation output against the skill-gap shape. Never raises."""
    text = _strip_code_fence(raw or "")
    if not text:
        return ParseFailure("empty response")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        return ParseFailure(f"invalid JSON: {exc.msg}")
    if not isinstance(payload, dict):
        return ParseFailure("expected a JSON object")
    try:
        return Parsed(SkillGapDraft.model_validate(payload))
    except ValidationError as exc:
        return ParseFailure(f"schema violation: {_summarize_validation_error(exc)}")


def validate_analysis_input(
    resume_text: str | None, career_goal: str | None, *, min_resume_chars: int
) -> tuple[str, str]:
    resume = (resume_text or "").strip()
    goal = _clean(career_goal)
    if not resume:
        raise InvalidInputError("Resume text is required.")
    if len(resume) < min_resume_chars:
        raise InvalidInputError(f"Resume text must be at least {min_resume_chars} characters.")
    if not goal:
        raise InvalidInputError("Career goal is required.")
    return resume, goal


def build_analysis_prompt(
    resume: str, career_goal: str, target_role: str | None, *, max_resume_chars: int
) -> str:
    return _ANALYSIS_PROMPT.format(
        resume=resume[:max_resume_chars],
        career_goal=career_goal,
        target_role_line=f"Target role: {target_role}\n" if target_role else "",
    )


class SkillGapAnalyzer:
    def __init__(
        self,
        generator: TextGenerator,
        course_finder: CourseFinder,
        *,
        min_resume_chars: int = 10,
        resume_prompt_max_chars: int = 6000,
        course_lookup_timeout_s: float = 6.0,
    ):
        self._generator = generator
        self._course_finder = course_finder
        self._min_resume_chars = min_resume_chars
        self._resume_prompt_max_chars = resume_prompt_max_chars
        self._course_lookup_timeout_s = course_lookup_timeout_s

    def validate(self, resume_text: str | None, career_goal: str | None) -> tuple[str, str]:
        return validate_analysis_input(
            resume_text, career_goal, min_resume_chars=self._min_resume_chars
        )

    async def analyze(
        self, resume_text: str, career_goal: str, target_role: str | None = None
    ) -> SkillGapAnalysis:
        resume, goal = self.validate(resume_text, career_goal)
        started_at = time.perf_counter()

        prompt = build_analysis_prompt(
            resume,
            goal,
            _clean(target_role) or None,
            max_resume_chars=self._resume_prompt_max_chars,
        )
        try:
            raw = await self._generator.generate(prompt, ANALYSIS_OUTPUT_SCHEMA)
        except TextGenerationError as exc:
            raise AnalysisError(f"Could not analyze resume: {exc}") from exc

        result = parse_analysis_response(raw)
        if isinstance(result, ParseFailure):
            logger.warning(
                json.dumps(
                    {
                        "event": "analysis_parse_failed",
                        "reason": result.reason,
                        "response_len": len(raw or ""),
                    }
                )
            )
            raise AnalysisParseError(
                f"Could not analyze resume: the model response was unusable ({result.reason})."
            )

        draft = result.value
        # Every lookup settles to a list, so gather never sees a sibling's exception.
        course_lists = await asyncio.gather(
            *(self._courses_for(recommendation, goal) for recommendation in draft.recommendations)
        )
        analysis = SkillGapAnalysis(
            current_skills=draft.current_skills,
            required_skills=draft.required_skills,
            skill_gaps=draft.skill_gaps,
            experience=draft.experience,
            overall_score=draft.overall_score,
            recommendations=[
                Recommendation(
                    skill=recommendation.skill,
                    priority=recommendation.priority,
                    description=recommendation.description,
                    courses=courses,
                )
                for recommendation, courses in zip(draft.recommendations, course_lists)
            ],
        )
        logger.info(
            json.dumps(
                {
                    "event": "skill_gap_analysis",
                    "overall_score": analysis.overall_score,
                    "skill_gaps": len(analysis.skill_gaps),
                    "recommendations": len(analysis.recommendations),
                    "courses": sum(len(courses) for courses in course_lists),
                    "duration_ms": int((time.perf_counter() - started_at) * 1000),
                }
            )
        )
        return analysis

    async def _courses_for(self, recommendation: RecommendationDraft, career_goal: str) -> list[Course]:
        try:
            return await asyncio.wait_for(
                self._course_finder.find_courses(recommendation.skill, career_goal),
                timeout=self._course_lookup_timeout_s,
            )
        except InvalidQueryError:
            logger.exception(
                json.dumps({"event": "course_lookup_invalid_query", "skill": recommendation.skill})
            )
            return []
        except asyncio.TimeoutError:
            logger.warning(
                json.dumps(
                    {
                        "event": "course_lookup_timeout",
                        "skill": recommendation.skill,
                        "timeout_s": self._course_lookup_timeout_s,
                    }
                )
            )
            return self._course_finder.fallback_courses(recommendation.skill)
        except Exception as exc:  # noqa: BLE001 - one lookup must not fail the analysis
            logger.warning(
                json.dumps(
                    {
                        "event": "course_lookup_failed",
                        "skill": recommendation.skill,
                        "error": str(exc)[:300],
                    }
                )
            )
            return self._course_finder.fallback_courses(recommendation.skill)
