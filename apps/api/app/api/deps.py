from fastapi import Header

from app.services.llm.client import TextClient, build_text_client


def get_caller_id(x_caller_id: str | None = Header(default=None)) -> str | None:
    """
    Caller identity, set by the gateway after it verified the session.
    None means unauthenticated.
    """
    caller = (x_caller_id or "").strip()
    return caller or None


def get_text_client() -> TextClient:
    return build_text_client()
