from dataclasses import dataclass
from typing import Any, Literal, Protocol


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


class TextGenerationError(RuntimeError):
    def __init__(self, message: str, *, code: str = "llm_error"):
        super().__init__(message)
        self.code = code


class TextGenerator(Protocol):
    async def generate(
        self, prompt: str, output_schema: dict[str, Any] | None = None
    ) -> str: ...


class ImageTextReader(Protocol):
    async def read_image_text(self, content: bytes, mime_type: str) -> str: ...
