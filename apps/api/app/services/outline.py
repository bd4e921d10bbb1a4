from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from app.core.config import settings
from app.services.card_parser import CardParseError, parse_json_payload
from app.services.llm.client import TextClient
from app.services.llm.prompts import build_outline_prompt

logger = logging.getLogger(__name__)

DIFFICULTIES = ("Easy", "Medium", "Hard")

SHORT_CONTENT_CHARS = 5000
SHORT_RANGE = (2, 8)
MAX_TOPICS_CAP = 30


@dataclass
class Topic:
    title: str
    category: str
    difficulty: str


def normalize_difficulty(value: Any) -> str:
    s = str(value or "").strip().capitalize()
    return s if s in DIFFICULTIES else "Medium"


def topic_range(length: int) -> tuple[int, int]:
    """
    (min, max) topic counts for content of the given length.

    Short content gets a fixed small range; longer content grows with length
    (min ~ length/1500, max ~ length/800) up to MAX_TOPICS_CAP.
    """
    if length <= SHORT_CONTENT_CHARS:
        return SHORT_RANGE

    max_topics = min(MAX_TOPICS_CAP, math.ceil(length / 800))
    min_topics = min(length // 1500, max_topics)
    return max(SHORT_RANGE[0], min_topics), max_topics


def _topic_items(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        # models alternate between the two field names
        for key in ("topics", "cards"):
            items = payload.get(key)
            if isinstance(items, list):
                return items
    raise CardParseError("Outline response has no 'topics' or 'cards' list")


def outline_topics(client: TextClient, content: str, mode: str | None) -> list[Topic]:
    """
    One generation call, no retry: any failure here is fatal for the job.
    """
    min_topics, max_topics = topic_range(len(content))
    excerpt = content[: settings.outline_content_max_chars]

    raw = client.generate(build_outline_prompt(excerpt, mode, min_topics, max_topics))
    items = _topic_items(parse_json_payload(raw))

    topics: list[Topic] = []
    for it in items:
        if isinstance(it, str):
            it = {"title": it}
        if not isinstance(it, dict):
            continue
        title = str(it.get("title") or "").strip()
        if not title:
            continue
        topics.append(
            Topic(
                title=title,
                category=str(it.get("category") or "General").strip() or "General",
                difficulty=normalize_difficulty(it.get("difficulty")),
            )
        )

    if len(topics) < min_topics:
        logger.warning(
            "Outline returned %d topics, fewer than the requested minimum %d (content length %d)",
            len(topics),
            min_topics,
            len(content),
        )
    return topics
