from __future__ import annotations

from typing import Protocol

from app.core.config import settings


class GenerationError(RuntimeError):
    """The text generation service failed or returned nothing usable."""


class TextClient(Protocol):
    def generate(self, prompt: str, json_mode: bool = True) -> str:
        ...


def build_text_client(provider: str | None = None) -> TextClient:
    """
    Provider is picked by CARD_GEN_PROVIDER: gemini (default) | openai | ollama.
    Imports stay local so an unused SDK is never loaded.
    """
    provider = (provider or settings.card_gen_provider or "gemini").strip().lower()

    if provider == "gemini":
        from app.services.llm.gemini_client import GeminiClient

        return GeminiClient(
            base_url=settings.gemini_base_url,
            model=settings.gemini_model,
            timeout_s=settings.gemini_timeout_sec,
        )

    if provider == "openai":
        from app.services.llm.openai_client import OpenAIClient

        return OpenAIClient(model=settings.openai_model)

    if provider == "ollama":
        from app.services.llm.ollama_client import OllamaClient

        return OllamaClient(base_url=settings.ollama_base_url, model=settings.ollama_model)

    raise ValueError(f"Unknown CARD_GEN_PROVIDER: {provider}")
