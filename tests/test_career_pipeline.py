import json
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.ai.types import TextGenerationError
from app.services.career_errors import AnalysisParseError, InvalidInputError, RoadmapGenerationError
from app.services.career_pipeline import CareerPipeline
from app.services.course_finder import CourseFinder
from app.services.roadmap_composer import RoadmapComposer
from app.services.skill_gap_analyzer import SkillGapAnalyzer

RESUME = "Frontend developer, 2 years of HTML, CSS and JavaScript with React side projects."

ANALYSIS_RESPONSE = json.dumps(
    {
        "currentSkills": ["HTML", "CSS", "JavaScript"],
        "requiredSkills": ["JavaScript", "TypeScript", "React", "Node"],
        "skillGaps": ["TypeScript", "Node"],
        "experience": "Junior frontend developer",
        "recommendations": [
            {"skill": "TypeScript", "priority": "High", "description": "Expected in modern teams."},
            {"skill": "Node", "priority": "Medium", "description": "Backend basics."},
        ],
        "overallScore": 62,
    }
)


class FakeGenerator:
    def __init__(self, *responses, error=None):
        self.responses = list(responses)
        self.error = error
        self.calls = []

    async def generate(self, prompt, output_schema=None):
        self.calls.append(prompt)
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


class RecordingCourseFinder(CourseFinder):
    def __init__(self):
        super().__init__(None, catalog={})
        self.calls = []

    async def find_courses(self, skill, career_goal):
        self.calls.append(skill)
        return await super().find_courses(skill, career_goal)


def _pipeline(analysis_generator, roadmap_generator, finder=None):
    analyzer = SkillGapAnalyzer(analysis_generator, finder or RecordingCourseFinder())
    return CareerPipeline(analyzer, RoadmapComposer(roadmap_generator))


class CareerPipelineTests(unittest.IsolatedAsyncioTestCase):
    async def test_full_run_returns_analysis_and_roadmap(self):
        finder = RecordingCourseFinder()
        pipeline = _pipeline(
            FakeGenerator(ANALYSIS_RESPONSE),
            FakeGenerator("Month 1: TypeScript basics."),
            finder,
        )

        result = await pipeline.run_career_analysis(RESUME, "Full Stack Developer", "Frontend Engineer")

        self.assertEqual(result.analysis.overall_score, 62)
        self.assertEqual(result.roadmap, "Month 1: TypeScript basics.")
        self.assertEqual(sorted(finder.calls), ["Node", "TypeScript"])
        # No catalog keywords configured, so each gap gets a search link.
        self.assertEqual(result.analysis.recommendations[0].courses[0].channel, "YouTube Search")
        payload = result.model_dump(by_alias=True)
        self.assertIn("skillGaps", payload["analysis"])
        self.assertIn("overallScore", payload["analysis"])

    async def test_empty_resume_makes_no_calls(self):
        analysis_generator = FakeGenerator(ANALYSIS_RESPONSE)
        roadmap_generator = FakeGenerator("unused")
        finder = RecordingCourseFinder()
        pipeline = _pipeline(analysis_generator, roadmap_generator, finder)

        with self.assertRaises(InvalidInputError):
            await pipeline.run_career_analysis("", "Data Scientist")
        self.assertEqual(analysis_generator.calls, [])
        self.assertEqual(roadmap_generator.calls, [])
        self.assertEqual(finder.calls, [])

    async def test_invalid_analysis_json_skips_roadmap(self):
        roadmap_generator = FakeGenerator("unused")
        finder = RecordingCourseFinder()
        pipeline = _pipeline(FakeGenerator("not json at all"), roadmap_generator, finder)

        with self.assertLogs("app.career", level="WARNING") as logs:
            with self.assertRaises(AnalysisParseError):
                await pipeline.run_career_analysis(RESUME, "Full Stack Developer")
        self.assertEqual(roadmap_generator.calls, [])
        self.assertEqual(finder.calls, [])
        self.assertIn('"stage": "analysis"', logs.output[-1])

    async def test_roadmap_failure_carries_analysis(self):
        pipeline = _pipeline(
            FakeGenerator(ANALYSIS_RESPONSE),
            FakeGenerator(error=TextGenerationError("timeout")),
        )

        with self.assertRaises(RoadmapGenerationError) as ctx:
            await pipeline.run_career_analysis(RESUME, "Full Stack Developer")
        self.assertIsNotNone(ctx.exception.analysis)
        self.assertEqual(ctx.exception.analysis.skill_gaps, ["TypeScript", "Node"])


if __name__ == "__main__":
    unittest.main()
