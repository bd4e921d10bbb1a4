from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from app.core.config import settings
from app.services.card_parser import CardParseError, extract_json_object
from app.services.llm.client import TextClient
from app.services.llm.prompts import build_card_prompt, content_format
from app.services.outline import Topic, normalize_difficulty

logger = logging.getLogger(__name__)

# Spacing between synthetic creation times of consecutive cards.
CREATED_AT_STEP = timedelta(milliseconds=1000)


@dataclass
class Card:
    id: str
    title: str
    category: str
    difficulty: str
    body: str
    question: str
    answer: str
    collection_id: str | None
    created_at: datetime
    content_format: str = "plain"
    is_custom_generated: bool = True

    def to_dict(self) -> dict[str, Any]:
        """
        Stored shape (camelCase, as clients read it from the job document).
        """
        page: dict[str, Any] = {
            "type": "text",
            "content": self.body,
            "question": self.question,
            "answer": self.answer,
            "contentFormat": self.content_format,
        }

        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "difficulty": self.difficulty,
            "body": self.body,
            "flashcard": {"question": self.question, "answer": self.answer},
            "collectionId": self.collection_id,
            "presentation": {"pages": [page]},
            "isCustomGenerated": self.is_custom_generated,
            "createdAt": self.created_at.isoformat(),
        }


def card_id_for(job_id: str, index: int) -> str:
    # zero-padded so lexical order == generation order
    return f"{job_id}_{index:04d}"


def card_created_at(base_time: datetime, index: int) -> datetime:
    return base_time + index * CREATED_AT_STEP


def _build_card(
    payload: dict[str, Any],
    topic: Topic,
    mode: str | None,
    index: int,
    *,
    job_id: str,
    collection_id: str | None,
    base_time: datetime,
) -> Card:
    body = str(payload.get("body") or payload.get("content") or payload.get("explanation") or "").strip()

    fc = payload.get("flashcard")
    if not isinstance(fc, dict):
        fc = {}
    question = str(fc.get("question") or fc.get("front") or "").strip()
    answer = str(fc.get("answer") or fc.get("back") or "").strip()

    if not body:
        raise CardParseError("Card JSON has no body")
    if not question or not answer:
        raise CardParseError("Card JSON has no flashcard question/answer")

    return Card(
        id=card_id_for(job_id, index),
        title=str(payload.get("title") or topic.title).strip() or topic.title,
        category=str(payload.get("category") or topic.category).strip() or topic.category,
        difficulty=normalize_difficulty(payload.get("difficulty") or topic.difficulty),
        body=body,
        question=question,
        answer=answer,
        collection_id=collection_id,
        created_at=card_created_at(base_time, index),
        content_format=content_format(mode),
    )


def expand_topic(
    client: TextClient,
    topic: Topic,
    content: str,
    mode: str | None,
    index: int,
    *,
    job_id: str,
    collection_id: str | None,
    base_time: datetime,
) -> Card | None:
    """
    Turn one outline topic into a Card.

    Up to CARD_MAX_ATTEMPTS generation calls with a fixed backoff between them.
    Returns None once attempts are exhausted; a failed card never fails the job.
    """
    attempts = max(1, settings.card_max_attempts)
    excerpt = content[: settings.card_content_max_chars]
    prompt = build_card_prompt(topic.title, topic.category, topic.difficulty, excerpt, mode)

    last_err: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            raw = client.generate(prompt)
            payload = extract_json_object(raw)
            return _build_card(
                payload,
                topic,
                mode,
                index,
                job_id=job_id,
                collection_id=collection_id,
                base_time=base_time,
            )
        except Exception as e:
            # GenerationError, CardParseError or anything the provider SDK raises
            last_err = e
            logger.warning(
                "Card %d (%r) attempt %d/%d failed: %s", index, topic.title, attempt, attempts, e
            )
            if attempt < attempts:
                time.sleep(settings.card_retry_backoff_sec)

    logger.error("Card %d (%r) skipped after %d attempts: %s", index, topic.title, attempts, last_err)
    return None
