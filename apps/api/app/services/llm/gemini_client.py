from __future__ import annotations

import os
from typing import Any, Dict, Optional

import httpx

from app.services.llm.client import GenerationError


class GeminiClient:
    """
    Minimal Gemini REST client.

    Uses models/{model}:generateContent (non-streaming); the API key goes in the
    `key` query parameter, the same way the proxy forwards client calls.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout_s: float = 120.0,
        api_key: Optional[str] = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_s = timeout_s
        self.api_key = api_key
        self._transport = transport

    def _key(self) -> str:
        key = self.api_key or os.getenv("GEMINI_API_KEY")
        if not key:
            raise GenerationError("GEMINI_API_KEY is missing")
        return key

    def generate(self, prompt: str, json_mode: bool = True, temperature: float = 0.7) -> str:
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"

        generation_config: Dict[str, Any] = {"temperature": temperature}
        if json_mode:
            generation_config["responseMimeType"] = "application/json"

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }

        try:
            with httpx.Client(timeout=self.timeout_s, transport=self._transport) as client:
                r = client.post(url, params={"key": self._key()}, json=payload)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            raise GenerationError(f"Gemini returned HTTP {e.response.status_code}: {e.response.text[:200]}") from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Gemini request failed: {e}") from e

        # {"candidates":[{"content":{"parts":[{"text":"..."}]}}], ...}
        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason")
            raise GenerationError(f"Gemini returned no candidates (blockReason={reason})")

        parts = ((candidates[0].get("content") or {}).get("parts")) or []
        text = "".join(p.get("text") or "" for p in parts if isinstance(p, dict)).strip()
        if not text:
            raise GenerationError("Empty response from Gemini")
        return text
