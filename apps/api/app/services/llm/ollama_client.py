from __future__ import annotations

from typing import Any, Dict

import httpx

from app.services.llm.client import GenerationError


class OllamaClient:
    """
    Minimal Ollama client for local generation.

    Uses /api/generate (simple) to keep integration stable.
    """

    def __init__(self, base_url: str, model: str, timeout_s: float = 300.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_s = timeout_s

    def generate(self, prompt: str, json_mode: bool = True, temperature: float = 0.4) -> str:
        url = f"{self.base_url}/api/generate"

        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature,
            },
        }
        if json_mode:
            payload["format"] = "json"

        timeout = httpx.Timeout(self.timeout_s, connect=10.0)
        try:
            with httpx.Client(timeout=timeout) as client:
                r = client.post(url, json=payload)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPError as e:
            raise GenerationError(f"Ollama request failed: {e}") from e

        # Ollama returns {"response": "...", ...}
        text = (data.get("response") or "").strip()
        if not text:
            raise GenerationError("Empty response from Ollama")
        return text
