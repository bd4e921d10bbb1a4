from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator

import httpx
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from app.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gemini-proxy", tags=["proxy"])

# Widest CORS policy; web preflights must never fail.
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Max-Age": "3600",
}

DEFAULT_API_CLIENT = "revert-to-1.5"


async def get_proxy_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=settings.proxy_timeout_sec) as client:
        yield client


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
async def gemini_proxy(path: str, request: Request, client: httpx.AsyncClient = Depends(get_proxy_client)) -> Response:
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)

    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        logger.error("GEMINI_API_KEY missing")
        return JSONResponse(status_code=500, content={"error": "API Key missing"}, headers=CORS_HEADERS)

    try:
        target_path = ("/" + path).replace("//", "/", 1)
        target_url = f"{settings.gemini_base_url.rstrip('/')}{target_path}"
        logger.info("Forwarding %s to %s", request.method, target_url)

        params = [(k, v) for k, v in request.query_params.multi_items() if k != "key"]
        params.append(("key", api_key))

        body = await request.body()
        upstream = await client.request(
            request.method,
            target_url,
            params=params,
            content=body or None,
            headers={
                "Content-Type": "application/json",
                # only the client version header is passed through
                "x-goog-api-client": request.headers.get("x-goog-api-client") or DEFAULT_API_CLIENT,
            },
        )

        # upstream errors (4xx/5xx) go back verbatim
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type") or "application/json",
            headers=CORS_HEADERS,
        )
    except Exception as e:
        logger.exception("Proxy error")
        return JSONResponse(
            status_code=500,
            content={"error": "Proxy Exception", "details": str(e)},
            headers=CORS_HEADERS,
        )
