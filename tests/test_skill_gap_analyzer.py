import asyncio
import json
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.ai.types import TextGenerationError
from app.schemas.career import Course
from app.services.career_errors import AnalysisError, AnalysisParseError, InvalidInputError, InvalidQueryError
from app.services.course_finder import CourseFinder
from app.services.skill_gap_analyzer import (
    ANALYSIS_OUTPUT_SCHEMA,
    ParseFailure,
    Parsed,
    SkillGapAnalyzer,
    parse_analysis_response,
)

RESUME = "Software engineer with 3 years of Python, SQL and Flask experience building REST APIs."

ML_RESPONSE = {
    "currentSkills": ["Python", "SQL", "Flask", "python"],
    "requiredSkills": ["Python", "Machine Learning", "Statistics", "Docker"],
    "skillGaps": ["Machine Learning", "Statistics", "Docker"],
    "experience": "Mid-level backend engineer",
    "recommendations": [
        {"skill": "Machine Learning", "priority": "High", "description": "Core of the role."},
        {"skill": "Statistics", "priority": "medium", "description": "Needed for model evaluation."},
        {"skill": "Docker", "priority": "Low", "description": "Deploy models."},
    ],
    "overallScore": 55,
}

CATALOG = {
    "machine learning": (
        Course(title="ML Course", url="https://www.youtube.com/results?search_query=ml", channel="freeCodeCamp.org"),
    ),
    "statistics": (
        Course(title="Stats Course", url="https://www.youtube.com/results?search_query=stats", channel="StatQuest"),
    ),
}


class FakeGenerator:
    def __init__(self, response="", error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate(self, prompt, output_schema=None):
        self.calls.append((prompt, output_schema))
        if self.error is not None:
            raise self.error
        return self.response


class ScriptedCourseFinder(CourseFinder):
    """Per-skill behaviour: a list of courses, an exception, or a delay in seconds."""

    def __init__(self, script):
        super().__init__(None, catalog=CATALOG)
        self.script = script
        self.calls = []

    async def find_courses(self, skill, career_goal):
        self.calls.append((skill, career_goal))
        action = self.script.get(skill, [])
        if isinstance(action, Exception):
            raise action
        if isinstance(action, float):
            await asyncio.sleep(action)
            return []
        return action


def _course(title):
    return Course(title=title, url=f"https://www.youtube.com/watch?v={title}", channel="Channel")


class ParseAnalysisResponseTests(unittest.TestCase):
    def test_accepts_fenced_json(self):
        raw = "```json\n" + json.dumps(ML_RESPONSE) + "\n```"
        result = parse_analysis_response(raw)
        self.assertIsInstance(result, Parsed)
        self.assertEqual(result.value.current_skills, ["Python", "SQL", "Flask"])
        self.assertEqual(result.value.recommendations[1].priority, "Medium")

    def test_rejects_invalid_json(self):
        result = parse_analysis_response("Sure! Here is the analysis: {")
        self.assertIsInstance(result, ParseFailure)
        self.assertTrue(result.reason.startswith("invalid JSON"))

    def test_rejects_empty_and_non_object(self):
        self.assertEqual(parse_analysis_response("   "), ParseFailure("empty response"))
        self.assertEqual(parse_analysis_response("[1, 2]"), ParseFailure("expected a JSON object"))

    def test_rejects_missing_fields(self):
        payload = dict(ML_RESPONSE)
        del payload["skillGaps"]
        result = parse_analysis_response(json.dumps(payload))
        self.assertIsInstance(result, ParseFailure)
        self.assertIn("skillGaps", result.reason)

    def test_rejects_recommendation_without_description(self):
        payload = dict(ML_RESPONSE, recommendations=[{"skill": "Go", "priority": "High"}])
        result = parse_analysis_response(json.dumps(payload))
        self.assertIsInstance(result, ParseFailure)
        self.assertIn("description", result.reason)

    def test_rejects_unknown_priority(self):
        payload = dict(ML_RESPONSE, recommendations=[{"skill": "Go", "priority": "Urgent"}])
        self.assertIsInstance(parse_analysis_response(json.dumps(payload)), ParseFailure)

    def test_score_is_clamped_and_rounded(self):
        for raw_score, expected in ((140, 100), (-5, 0), (72.6, 73), ("64%", 64)):
            result = parse_analysis_response(json.dumps(dict(ML_RESPONSE, overallScore=raw_score)))
            self.assertIsInstance(result, Parsed)
            self.assertEqual(result.value.overall_score, expected)

    def test_non_numeric_score_is_rejected(self):
        for raw_score in ("abc", True, None):
            result = parse_analysis_response(json.dumps(dict(ML_RESPONSE, overallScore=raw_score)))
            self.assertIsInstance(result, ParseFailure)

    def test_schema_uses_camel_case_keys(self):
        self.assertIn("overallScore", ANALYSIS_OUTPUT_SCHEMA["properties"])
        self.assertIn("skillGaps", ANALYSIS_OUTPUT_SCHEMA["properties"])

    def test_schema_requires_recommendation_description(self):
        recommendation_schema = ANALYSIS_OUTPUT_SCHEMA["$defs"]["RecommendationDraft"]
        self.assertIn("description", recommendation_schema["required"])


class SkillGapAnalyzerTests(unittest.IsolatedAsyncioTestCase):
    async def test_ml_engineer_analysis_attaches_courses_in_order(self):
        generator = FakeGenerator(json.dumps(ML_RESPONSE))
        finder = ScriptedCourseFinder(
            {
                "Machine Learning": [_course("ml1"), _course("ml2")],
                "Statistics": [_course("stats1")],
                "Docker": [],
            }
        )
        analyzer = SkillGapAnalyzer(generator, finder)

        analysis = await analyzer.analyze(RESUME, "  Machine   Learning Engineer ")

        self.assertEqual(analysis.overall_score, 55)
        self.assertEqual(
            [recommendation.skill for recommendation in analysis.recommendations],
            ["Machine Learning", "Statistics", "Docker"],
        )
        self.assertEqual([course.title for course in analysis.recommendations[0].courses], ["ml1", "ml2"])
        self.assertEqual(analysis.recommendations[2].courses, [])
        self.assertEqual(len(generator.calls), 1)
        prompt, schema = generator.calls[0]
        self.assertIn(RESUME, prompt)
        self.assertIn("Career goal: Machine Learning Engineer", prompt)
        self.assertIs(schema, ANALYSIS_OUTPUT_SCHEMA)
        self.assertEqual(
            sorted(finder.calls),
            sorted(
                [
                    ("Machine Learning", "Machine Learning Engineer"),
                    ("Statistics", "Machine Learning Engineer"),
                    ("Docker", "Machine Learning Engineer"),
                ]
            ),
        )

    async def test_failed_lookup_does_not_affect_siblings(self):
        generator = FakeGenerator(json.dumps(ML_RESPONSE))
        finder = ScriptedCourseFinder(
            {
                "Machine Learning": RuntimeError("search exploded"),
                "Statistics": [_course("stats1")],
                "Docker": [_course("docker1")],
            }
        )
        analyzer = SkillGapAnalyzer(generator, finder)

        analysis = await analyzer.analyze(RESUME, "ML Engineer")

        self.assertEqual(analysis.recommendations[0].courses[0].title, "ML Course")
        self.assertEqual(analysis.recommendations[1].courses[0].title, "stats1")
        self.assertEqual(analysis.recommendations[2].courses[0].title, "docker1")

    async def test_slow_lookup_times_out_to_fallback(self):
        generator = FakeGenerator(json.dumps(ML_RESPONSE))
        finder = ScriptedCourseFinder(
            {
                "Machine Learning": [_course("ml1")],
                "Statistics": 5.0,
                "Docker": [_course("docker1")],
            }
        )
        analyzer = SkillGapAnalyzer(generator, finder, course_lookup_timeout_s=0.05)

        analysis = await analyzer.analyze(RESUME, "ML Engineer")

        self.assertEqual(analysis.recommendations[0].courses[0].title, "ml1")
        self.assertEqual(analysis.recommendations[1].courses[0].title, "Stats Course")
        self.assertEqual(analysis.recommendations[2].courses[0].title, "docker1")

    async def test_invalid_query_leaves_recommendation_without_courses(self):
        generator = FakeGenerator(json.dumps(ML_RESPONSE))
        finder = ScriptedCourseFinder({"Docker": InvalidQueryError("bad query")})
        analyzer = SkillGapAnalyzer(generator, finder)

        with self.assertLogs("app.services.skill_gap_analyzer", level="ERROR"):
            analysis = await analyzer.analyze(RESUME, "ML Engineer")

        self.assertEqual(analysis.recommendations[2].courses, [])

    async def test_invalid_input_makes_no_generation_call(self):
        generator = FakeGenerator(json.dumps(ML_RESPONSE))
        finder = ScriptedCourseFinder({})
        analyzer = SkillGapAnalyzer(generator, finder)

        for resume, goal in (("", "ML Engineer"), ("short", "ML Engineer"), (RESUME, "   ")):
            with self.assertRaises(InvalidInputError):
                await analyzer.analyze(resume, goal)
        self.assertEqual(generator.calls, [])
        self.assertEqual(finder.calls, [])

    async def test_unparseable_response_raises_parse_error(self):
        generator = FakeGenerator("I cannot help with that.")
        finder = ScriptedCourseFinder({})
        analyzer = SkillGapAnalyzer(generator, finder)

        with self.assertRaises(AnalysisParseError) as ctx:
            await analyzer.analyze(RESUME, "ML Engineer")
        self.assertEqual(ctx.exception.status_code, 502)
        self.assertEqual(finder.calls, [])

    async def test_generation_failure_raises_analysis_error(self):
        generator = FakeGenerator(error=TextGenerationError("upstream down"))
        analyzer = SkillGapAnalyzer(generator, ScriptedCourseFinder({}))

        with self.assertRaises(AnalysisError) as ctx:
            await analyzer.analyze(RESUME, "ML Engineer")
        self.assertNotIsInstance(ctx.exception, AnalysisParseError)
        self.assertEqual(ctx.exception.code, "analysis_failed")

    async def test_long_resume_is_truncated_in_prompt(self):
        generator = FakeGenerator(json.dumps(ML_RESPONSE))
        analyzer = SkillGapAnalyzer(generator, ScriptedCourseFinder({}), resume_prompt_max_chars=50)

        await analyzer.analyze("x" * 40 + "y" * 200, "ML Engineer")

        prompt, _ = generator.calls[0]
        self.assertIn("x" * 40 + "y" * 10, prompt)
        self.assertNotIn("y" * 11, prompt)


if __name__ == "__main__":
    unittest.main()
