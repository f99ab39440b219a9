from __future__ import annotations

import json
import logging

from app.ai.types import TextGenerationError, TextGenerator
from app.schemas.career import SkillGapAnalysis
from app.services.career_errors import RoadmapGenerationError

logger = logging.getLogger(__name__)

ROADMAP_PLACEHOLDER = "Could not generate roadmap"

_ROADMAP_PROMPT = """Create a learning roadmap for this career goal: {career_goal}

Current skills: {current_skills}
Skills to learn: {skill_gaps}
Current level: {experience}
Readiness score: {overall_score}%

High-priority recommendations:
{high_priority}

Write a structured, actionable roadmap (max 300 words) with:
1. A phase-based approach (Beginner -> Intermediate -> Advanced)
2. Timeline estimates for each phase
3. A specific learning path for each skill gap
4. Project suggestions to build a portfolio
5. Certification recommendations where applicable
6. Next steps to take immediately

Keep it motivating and focused on practical steps they can take right away."""


def _join(values: list[str]) -> str:
    return ", ".join(values) if values else "none identified"


def build_roadmap_prompt(analysis: SkillGapAnalysis, career_goal: str) -> str:
    high_priority = [
        f"- {recommendation.skill}: {recommendation.description}".rstrip(": ")
        for recommendation in analysis.recommendations
        if recommendation.priority == "High"
    ]
    return _ROADMAP_PROMPT.format(
        career_goal=career_goal,
        current_skills=_join(analysis.current_skills),
        skill_gaps=_join(analysis.skill_gaps),
        experience=analysis.experience or "not stated",
        overall_score=analysis.overall_score,
        high_priority="\n".join(high_priority) if high_priority else "- none",
    )


class RoadmapComposer:
    def __init__(self, generator: TextGenerator):
        self._generator = generator

    async def compose_roadmap(self, analysis: SkillGapAnalysis, career_goal: str) -> str:
        prompt = build_roadmap_prompt(analysis, career_goal)
        try:
            text = await self._generator.generate(prompt)
        except TextGenerationError as exc:
            raise RoadmapGenerationError(f"Could not build roadmap: {exc}", analysis=analysis) from exc

        roadmap = (text or "").strip()
        if not roadmap:
            logger.warning(json.dumps({"event": "roadmap_empty"}))
            return ROADMAP_PLACEHOLDER
        return roadmap
