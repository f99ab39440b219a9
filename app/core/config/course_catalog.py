from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from app.core.config.settings import settings
from app.schemas.career import Course

CourseCatalog = dict[str, tuple[Course, ...]]

_COURSE_CATALOG_CACHE: CourseCatalog | None = None
_DEFAULT_CATALOG_PATH = Path(__file__).resolve().parents[3] / "config" / "course_catalog.yaml"


def course_catalog_path() -> Path:
    if settings.course_catalog_path:
        return Path(settings.course_catalog_path)
    return _DEFAULT_CATALOG_PATH


def _parse_catalog(parsed: Any, path: Path) -> CourseCatalog:
    if not isinstance(parsed, dict):
        raise RuntimeError(f"Invalid course catalog '{path}': expected a top-level mapping.")

    catalog: CourseCatalog = {}
    for keyword, entries in parsed.items():
        key = str(keyword).strip().lower()
        if not key:
            raise RuntimeError(f"Invalid course catalog '{path}': empty keyword.")
        if not isinstance(entries, list) or not entries:
            raise RuntimeError(
                f"Invalid course catalog '{path}': '{key}' must map to a non-empty list of courses."
            )
        try:
            catalog[key] = tuple(Course.model_validate(entry) for entry in entries)
        except ValidationError as exc:
            raise RuntimeError(f"Invalid course entry for '{key}' in '{path}': {exc}") from exc
    return catalog


def load_course_catalog(path: Path) -> CourseCatalog:
    """Load a keyword -> courses mapping from YAML. Keyword order is kept for matching."""
    if not path.exists():
        raise RuntimeError(f"Course catalog not found at '{path}'.")

    try:
        import yaml  # type: ignore[import-not-found]
    except Exception as exc:
        raise RuntimeError(
            "Unable to parse course catalog because PyYAML is unavailable. "
            "Install dependency: PyYAML."
        ) from exc

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(f"Failed to read course catalog '{path}': {exc}") from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:  # type: ignore[attr-defined]
        raise RuntimeError(f"Invalid YAML in course catalog '{path}': {exc}") from exc

    return _parse_catalog(parsed, path)


def get_course_catalog() -> CourseCatalog:
    """Load the configured course catalog once and cache it."""
    global _COURSE_CATALOG_CACHE

    if _COURSE_CATALOG_CACHE is None:
        _COURSE_CATALOG_CACHE = load_course_catalog(course_catalog_path())
    return _COURSE_CATALOG_CACHE
