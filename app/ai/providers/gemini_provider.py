from __future__ import annotations

import os
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from app.ai.types import TextGenerationError


class GeminiProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        temperature: float = 0.2,
    ):
        self._model = model
        self._temperature = temperature
        key = (
            api_key
            or os.getenv("GEMINI_API_KEY")
            or os.getenv("GOOGLE_GEMINI_API_KEY")
            or ""
        ).strip()
        if not key:
            raise TextGenerationError("GEMINI_API_KEY is missing", code="llm_disabled")
        self._client = genai.Client(api_key=key)

    async def generate(
        self, prompt: str, output_schema: dict[str, Any] | None = None
    ) -> str:
        # The schema itself travels in the prompt; the mime type forces bare JSON.
        config = types.GenerateContentConfig(
            temperature=self._temperature,
            response_mime_type="application/json" if output_schema is not None else None,
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=config,
            )
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            raise TextGenerationError(f"Gemini request failed: {exc}") from exc
        return response.text or ""

    async def read_image_text(self, content: bytes, mime_type: str) -> str:
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=[
                    types.Part.from_bytes(data=content, mime_type=mime_type),
                    "Extract all readable text from this resume image. Return plain text only.",
                ],
                config=types.GenerateContentConfig(temperature=0.1),
            )
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            raise TextGenerationError(f"Gemini image reading failed: {exc}") from exc
        return (response.text or "").strip()
