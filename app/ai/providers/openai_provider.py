from __future__ import annotations

import base64
import os
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError

from app.ai.types import ChatMessage, TextGenerationError

_SYSTEM_PROMPT = (
    "You are a career advisor for software and data professionals. "
    "Be concise, factual and practical."
)


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


class OpenAIProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        max_retries: int = 2,
        temperature: float = 0.2,
        max_output_tokens: int = 1500,
    ):
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key or _looks_like_placeholder(key):
            raise TextGenerationError("OPENAI_API_KEY is missing", code="llm_disabled")

        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=float(os.getenv("OPENAI_TIMEOUT_S", str(timeout_s))),
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", str(max_retries))),
        )

    async def generate(
        self, prompt: str, output_schema: dict[str, Any] | None = None
    ) -> str:
        messages = [
            ChatMessage(role="system", content=_SYSTEM_PROMPT),
            ChatMessage(role="user", content=prompt),
        ]
        payload = [{"role": m.role, "content": m.content} for m in messages]

        create_kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": payload,
            "temperature": self._temperature,
            "max_tokens": self._max_output_tokens,
        }
        if output_schema is not None:
            create_kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "structured_output", "schema": output_schema},
            }

        try:
            response = await self._client.chat.completions.create(**create_kwargs)
        except OpenAIError as exc:
            raise TextGenerationError(f"OpenAI request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else ""
        return content or ""

    async def read_image_text(self, content: bytes, mime_type: str) -> str:
        encoded = base64.b64encode(content).decode("utf-8")
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {
                        "role": "system",
                        "content": "Extract all readable text from this resume image. Return plain text only.",
                    },
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": "Read this image and return its text."},
                            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
                        ],
                    },
                ],
                temperature=0.1,
                max_tokens=1500,
            )
        except OpenAIError as exc:
            raise TextGenerationError(f"OpenAI image reading failed: {exc}") from exc

        text = response.choices[0].message.content if response.choices else ""
        return (text or "").strip()
