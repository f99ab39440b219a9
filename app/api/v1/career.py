from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status

from app.ai.types import ImageTextReader, TextGenerationError
from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.schemas.career import (
    CareerAnalysisRequest,
    CareerAnalysisResult,
    CourseSearchRequest,
    CourseSearchResponse,
    ResumeTextResponse,
)
from app.services.career_errors import CareerPipelineError, RoadmapGenerationError
from app.services.career_pipeline import (
    CareerPipeline,
    build_career_pipeline,
    build_course_finder,
    build_text_generator,
)
from app.services.course_finder import CourseFinder
from app.services.resume_extract import extract_resume_text

router = APIRouter()


def get_career_pipeline() -> CareerPipeline:
    try:
        return build_career_pipeline()
    except TextGenerationError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": exc.code, "message": str(exc)},
        ) from exc


def get_course_finder() -> CourseFinder:
    return build_course_finder()


def get_image_reader() -> ImageTextReader | None:
    try:
        return build_text_generator()
    except TextGenerationError:
        # Text and document uploads still work without a provider.
        return None


def _pipeline_http_error(exc: CareerPipelineError) -> HTTPException:
    detail: dict[str, Any] = {"code": exc.code, "message": str(exc)}
    if isinstance(exc, RoadmapGenerationError) and exc.analysis is not None:
        detail["analysis"] = exc.analysis.model_dump(by_alias=True, mode="json")
    return HTTPException(status_code=exc.status_code, detail=detail)


@router.post("/career/analyze", response_model=CareerAnalysisResult, response_model_by_alias=True)
@rate_limit()
async def career_analyze(
    request: Request,
    payload: CareerAnalysisRequest,
    pipeline: CareerPipeline = Depends(get_career_pipeline),
):
    _ = request
    try:
        return await pipeline.run_career_analysis(
            payload.resume_text, payload.career_goal, payload.target_role
        )
    except CareerPipelineError as exc:
        raise _pipeline_http_error(exc) from exc


@router.post("/career/courses", response_model=CourseSearchResponse, response_model_by_alias=True)
@rate_limit()
async def career_courses(
    request: Request,
    payload: CourseSearchRequest,
    finder: CourseFinder = Depends(get_course_finder),
):
    _ = request
    try:
        courses = await finder.find_courses(payload.skill, payload.career_goal)
    except CareerPipelineError as exc:
        raise _pipeline_http_error(exc) from exc
    return CourseSearchResponse(courses=courses)


@router.post("/career/extract-resume", response_model=ResumeTextResponse, response_model_by_alias=True)
@rate_limit(settings.upload_rate_limit)
async def career_extract_resume(
    request: Request,
    file: UploadFile = File(...),
    image_reader: ImageTextReader | None = Depends(get_image_reader),
):
    _ = request
    filename = file.filename or "uploaded-file"
    max_bytes = settings.max_upload_bytes

    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 64)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large. Maximum allowed size is {max_bytes // (1024 * 1024)} MB.",
            )
        chunks.append(chunk)
    payload = b"".join(chunks)

    try:
        return await extract_resume_text(
            filename,
            payload,
            image_reader=image_reader,
            min_chars=settings.resume_min_chars,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
