from __future__ import annotations

import math
from typing import Any, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Priority = Literal["High", "Medium", "Low"]
ResumeSourceType = Literal["text", "pdf", "word", "image"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def _unique_skills(values: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        skill = " ".join(value.split())
        key = skill.casefold()
        if not skill or key in seen:
            continue
        seen.add(key)
        unique.append(skill)
    return unique


class Course(CamelModel):
    title: str = Field(min_length=1)
    url: str = Field(min_length=1)
    channel: str = Field(min_length=1)
    duration: str | None = None
    description: str | None = None

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        parsed = urlparse(value.strip())
        if parsed.scheme != "https" or not parsed.netloc:
            raise ValueError("url must be an absolute https link")
        return value.strip()


class RecommendationDraft(CamelModel):
    skill: str
    priority: Priority
    description: str

    @field_validator("skill")
    @classmethod
    def _validate_skill(cls, value: str) -> str:
        skill = " ".join(value.split())
        if not skill:
            raise ValueError("skill must not be empty")
        return skill

    @field_validator("priority", mode="before")
    @classmethod
    def _normalize_priority(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().capitalize()
        return value


class Recommendation(RecommendationDraft):
    courses: list[Course] = Field(default_factory=list)


class SkillGapDraft(CamelModel):
    """Generation output before any course lookups have run."""

    current_skills: list[str]
    required_skills: list[str]
    skill_gaps: list[str]
    experience: str
    recommendations: list[RecommendationDraft]
    overall_score: int = Field(ge=0, le=100)

    @field_validator("current_skills", "required_skills", "skill_gaps")
    @classmethod
    def _dedupe_skills(cls, value: list[str]) -> list[str]:
        return _unique_skills(value)

    @field_validator("overall_score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError("overallScore must be a number")
        if isinstance(value, str):
            try:
                value = float(value.strip().rstrip("%"))
            except ValueError as exc:
                raise ValueError("overallScore must be a number") from exc
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValueError("overallScore must be a number")
        return max(0, min(100, int(round(value))))


class SkillGapAnalysis(SkillGapDraft):
    recommendations: list[Recommendation]


class CareerAnalysisRequest(CamelModel):
    resume_text: str = Field(default="", max_length=50000)
    career_goal: str = Field(default="", max_length=500)
    target_role: str | None = Field(default=None, max_length=200)


class CareerAnalysisResult(CamelModel):
    analysis: SkillGapAnalysis
    roadmap: str


class CourseSearchRequest(CamelModel):
    skill: str = Field(default="", max_length=200)
    career_goal: str = Field(default="", max_length=500)


class CourseSearchResponse(CamelModel):
    courses: list[Course]


class ResumeTextResponse(CamelModel):
    file_name: str
    source_type: ResumeSourceType
    text: str
    characters: int = Field(ge=0)
