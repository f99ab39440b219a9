from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.schemas.career import SkillGapAnalysis


class CareerPipelineError(RuntimeError):
    code = "career_pipeline_error"
    status_code = 500

    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class InvalidInputError(CareerPipelineError):
    code = "invalid_input"
    status_code = 422


class InvalidQueryError(CareerPipelineError):
    code = "invalid_query"
    status_code = 422


class AnalysisError(CareerPipelineError):
    code = "analysis_failed"
    status_code = 502


class AnalysisParseError(AnalysisError):
    code = "analysis_parse_error"


class RoadmapGenerationError(CareerPipelineError):
    code = "roadmap_failed"
    status_code = 502

    def __init__(self, message: str, *, analysis: SkillGapAnalysis | None = None):
        super().__init__(message)
        self.analysis = analysis


@dataclass(frozen=True)
class CourseLookupDegraded:
    """Logged when a course lookup falls back to the static catalog. Never raised."""

    skill: str
    reason: str
    detail: str = ""
