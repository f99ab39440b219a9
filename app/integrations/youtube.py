from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal, Protocol

import httpx

SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"

VideoDuration = Literal["any", "short", "medium", "long"]

_ISO_DURATION_RE = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")


class VideoSearchError(RuntimeError):
    pass


class VideoSearchUnavailable(VideoSearchError):
    pass


@dataclass(frozen=True)
class SearchFilters:
    duration: VideoDuration = "medium"
    embeddable: bool = True
    safe: bool = True


@dataclass(frozen=True)
class VideoCandidate:
    id: str
    title: str
    description: str
    channel_title: str
    duration_iso8601: str | None
    embeddable: bool = True


class VideoSearch(Protocol):
    async def search(
        self, query: str, max_results: int, filters: SearchFilters
    ) -> list[VideoCandidate]: ...


def parse_iso8601_duration(value: str | None) -> int | None:
    """Convert a YouTube duration such as 'PT1H2M3S' to seconds."""
    if not value:
        return None
    match = _ISO_DURATION_RE.match(value.strip().upper())
    if not match or not any(match.groups()):
        return None
    days, hours, minutes, seconds = (int(group) if group else 0 for group in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def format_duration(seconds: int) -> str:
    hours, remainder = divmod(max(0, seconds), 3600)
    minutes = remainder // 60
    if hours:
        return f"{hours}h {minutes:02d}m"
    return f"{minutes}m"


def _describe_http_error(exc: httpx.HTTPError) -> str:
    # Request URLs carry the API key, so never echo str(exc).
    if isinstance(exc, httpx.HTTPStatusError):
        return f"YouTube API returned HTTP {exc.response.status_code}"
    return f"YouTube API transport error ({type(exc).__name__})"


class YouTubeSearchClient:
    def __init__(
        self,
        api_key: str | None,
        *,
        timeout_s: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = (api_key or "").strip()
        self._timeout_s = timeout_s
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _search_params(self, query: str, max_results: int, filters: SearchFilters) -> dict[str, Any]:
        params: dict[str, Any] = {
            "part": "snippet",
            "type": "video",
            "q": query,
            "maxResults": max_results,
            "safeSearch": "strict" if filters.safe else "none",
            "relevanceLanguage": "en",
            "key": self._api_key,
        }
        if filters.embeddable:
            params["videoEmbeddable"] = "true"
        if filters.duration != "any":
            params["videoDuration"] = filters.duration
        return params

    async def search(
        self, query: str, max_results: int, filters: SearchFilters = SearchFilters()
    ) -> list[VideoCandidate]:
        if not self.configured:
            raise VideoSearchUnavailable("YouTube API key is not configured.")

        try:
            async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
                search_response = await client.get(
                    SEARCH_URL, params=self._search_params(query, max_results, filters)
                )
                search_response.raise_for_status()
                items = search_response.json().get("items") or []
                snippets = {
                    (item.get("id") or {}).get("videoId"): item.get("snippet") or {}
                    for item in items
                    if (item.get("id") or {}).get("videoId")
                }
                if not snippets:
                    return []

                details_response = await client.get(
                    VIDEOS_URL,
                    params={
                        "part": "contentDetails,status",
                        "id": ",".join(snippets),
                        "key": self._api_key,
                    },
                )
                details_response.raise_for_status()
                details = {
                    item.get("id"): item for item in details_response.json().get("items") or []
                }
        except httpx.HTTPError as exc:
            raise VideoSearchError(_describe_http_error(exc)) from exc
        except ValueError as exc:
            raise VideoSearchError("YouTube API returned an unreadable response.") from exc

        candidates: list[VideoCandidate] = []
        for video_id, snippet in snippets.items():
            detail = details.get(video_id) or {}
            candidates.append(
                VideoCandidate(
                    id=video_id,
                    title=str(snippet.get("title") or "").strip(),
                    description=str(snippet.get("description") or "").strip(),
                    channel_title=str(snippet.get("channelTitle") or "").strip(),
                    duration_iso8601=(detail.get("contentDetails") or {}).get("duration"),
                    embeddable=bool((detail.get("status") or {}).get("embeddable", True)),
                )
            )
        return candidates
