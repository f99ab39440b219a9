from app.ai.config import load_ai_config
from app.ai.types import TextGenerationError, TextGenerator

from app.ai.providers.openai_provider import OpenAIProvider
from app.ai.providers.gemini_provider import GeminiProvider


def get_text_generator() -> TextGenerator:
    cfg = load_ai_config()

    if cfg.provider == "openai":
        return OpenAIProvider(model=cfg.model)

    if cfg.provider == "gemini":
        return GeminiProvider(model=cfg.model)

    raise TextGenerationError(f"Unsupported AI_PROVIDER='{cfg.provider}'", code="llm_disabled")
