from __future__ import annotations

import os

from app.services.llm.client import GenerationError


def _build_openai_client():
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise GenerationError("OPENAI_API_KEY is missing")

    timeout_sec = float(os.getenv("OPENAI_TIMEOUT_SEC", "180"))

    # OpenAI SDK v1+. Retries are owned by the card expansion loop, so the SDK's are off.
    from openai import OpenAI  # type: ignore

    return OpenAI(api_key=api_key, timeout=timeout_sec, max_retries=0)


class OpenAIClient:
    def __init__(self, model: str) -> None:
        self.model = model
        self._client = None

    def generate(self, prompt: str, json_mode: bool = True) -> str:
        if self._client is None:
            self._client = _build_openai_client()

        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            chat = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
        except Exception as e:
            raise GenerationError(f"OpenAI request failed: {e}") from e

        text = (chat.choices[0].message.content or "").strip()
        if not text:
            raise GenerationError("Empty response from OpenAI")
        return text
