import json

import httpx
import pytest

from app.services.llm.client import GenerationError
from app.services.llm.gemini_client import GeminiClient


def _client(handler, api_key="k"):
    return GeminiClient(
        base_url="https://gemini.test",
        model="gemini-test",
        api_key=api_key,
        transport=httpx.MockTransport(handler),
    )


def test_generate_returns_candidate_text():
    seen = {}

    def handler(request):
        seen["url"] = request.url
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": '{"a": '}, {"text": "1}"}]}}]})

    assert _client(handler).generate("hello") == '{"a": 1}'
    assert seen["url"].path == "/v1beta/models/gemini-test:generateContent"
    assert seen["url"].params["key"] == "k"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "hello"
    assert seen["body"]["generationConfig"]["responseMimeType"] == "application/json"


def test_http_error_is_generation_error():
    with pytest.raises(GenerationError):
        _client(lambda req: httpx.Response(503, text="overloaded")).generate("x")


def test_blocked_prompt_is_generation_error():
    handler = lambda req: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})
    with pytest.raises(GenerationError, match="SAFETY"):
        _client(handler).generate("x")


def test_missing_key_is_generation_error(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(GenerationError):
        _client(lambda req: httpx.Response(200, json={}), api_key=None).generate("x")
