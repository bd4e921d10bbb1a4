import httpx
import pytest

from app.api.proxy import get_proxy_client
from app.main import app

PATH = "/gemini-proxy/v1beta/models/gemini-2.5-flash:generateContent"


@pytest.fixture()
def upstream(client):
    """Route the proxy's outbound calls to a scripted handler."""
    state = {"requests": [], "handler": lambda req: httpx.Response(200, json={"ok": True})}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return state["handler"](request)

    async def _client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as c:
            yield c

    app.dependency_overrides[get_proxy_client] = _client
    return state


def _assert_cors(r):
    assert r.headers["access-control-allow-origin"] == "*"
    assert r.headers["access-control-allow-headers"] == "*"
    assert r.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
    assert r.headers["access-control-max-age"] == "3600"


def test_preflight_short_circuits(client, upstream, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    r = client.options(PATH)
    assert r.status_code == 204
    assert r.content == b""
    _assert_cors(r)
    assert upstream["requests"] == []


def test_missing_api_key(client, upstream, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    r = client.post(PATH, json={"contents": []})
    assert r.status_code == 500
    assert r.json() == {"error": "API Key missing"}
    _assert_cors(r)
    assert upstream["requests"] == []


def test_forwards_path_query_body_and_key(client, upstream, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret-key")
    upstream["handler"] = lambda req: httpx.Response(200, json={"candidates": []})

    r = client.post(PATH + "?alt=json", json={"contents": [{"parts": [{"text": "hi"}]}]})

    assert r.status_code == 200
    assert r.json() == {"candidates": []}
    _assert_cors(r)

    sent = upstream["requests"][0]
    assert sent.method == "POST"
    assert sent.url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
    assert sent.url.host == "generativelanguage.googleapis.com"
    assert sent.url.params["alt"] == "json"
    assert sent.url.params["key"] == "secret-key"
    assert sent.headers["x-goog-api-client"] == "revert-to-1.5"
    assert sent.headers["content-type"] == "application/json"
    assert b'"hi"' in sent.content


def test_client_version_header_passed_through(client, upstream, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret-key")
    client.get("/gemini-proxy/v1beta/models", headers={"x-goog-api-client": "genai-js/0.21.0"})
    assert upstream["requests"][0].headers["x-goog-api-client"] == "genai-js/0.21.0"


def test_upstream_error_propagates_verbatim(client, upstream, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret-key")
    error_body = {"error": {"code": 429, "message": "Resource has been exhausted", "status": "RESOURCE_EXHAUSTED"}}
    upstream["handler"] = lambda req: httpx.Response(429, json=error_body)

    r = client.post(PATH, json={})
    assert r.status_code == 429
    assert r.json() == error_body
    _assert_cors(r)


def test_network_failure_becomes_proxy_exception(client, upstream, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret-key")

    def fail(req):
        raise httpx.ConnectError("connection refused")

    upstream["handler"] = fail

    r = client.post(PATH, json={})
    assert r.status_code == 500
    assert r.json() == {"error": "Proxy Exception", "details": "connection refused"}
    _assert_cors(r)


def test_only_leading_double_slash_collapsed(client, upstream, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret-key")
    client.get("/gemini-proxy//v1beta/files//abc")
    assert upstream["requests"][0].url.path == "/v1beta/files//abc"
