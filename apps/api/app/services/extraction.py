from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import CallableError
from app.models.job import TERMINAL_STATUSES
from app.services.card_expansion import expand_topic
from app.services.jobs import JobSupersededError, claim_job, get_job, merge_job_fields, save_cards_to_collection
from app.services.llm.client import TextClient, build_text_client
from app.services.outline import outline_topics

logger = logging.getLogger(__name__)

# Progress milestones
PROGRESS_STARTED = 0.1
PROGRESS_OUTLINED = 0.2
PROGRESS_EXPANDED = 0.9
PROGRESS_DONE = 1.0


def _now() -> datetime:
    return datetime.now(timezone.utc)


def expansion_progress(done: int, total: int) -> float:
    """Linear 0.2 -> 0.9 over finished topics (successful or not)."""
    if total <= 0:
        return PROGRESS_EXPANDED
    return round(PROGRESS_OUTLINED + (PROGRESS_EXPANDED - PROGRESS_OUTLINED) * done / total, 4)


def completion_message(card_count: int, total: int) -> str:
    if card_count >= total:
        return f"Done: generated {card_count} cards and saved them to your collection"
    return f"Done: generated {card_count} of {total} cards and saved them to your collection"


def run_extraction_job(
    db: Session,
    job_id: str | None,
    caller_id: str | None,
    client: TextClient | None = None,
) -> dict[str, Any]:
    """
    Run one extraction job end to end:
      validate -> claim (processing) -> outline -> expand each topic -> save cards -> completed

    Every stage boundary is a merge-update of the job row, which is what a
    reconnecting client watches. Any error after the claim marks the job failed
    and surfaces as an "internal" CallableError.
    """
    if not caller_id:
        raise CallableError("unauthenticated", "You must be signed in to run an extraction job.")
    if not job_id:
        raise CallableError("invalid-argument", "jobId is required.")

    job = get_job(db, job_id)
    if job is None:
        raise CallableError("not-found", f"Job {job_id} does not exist.")
    if job.owner_id != caller_id:
        raise CallableError("permission-denied", "This job belongs to another user.")
    if job.status in TERMINAL_STATUSES:
        raise CallableError("failed-precondition", f"Job {job_id} is already {job.status}.")

    if not (job.content or "").strip():
        merge_job_fields(
            db,
            job_id,
            {"status": "failed", "error": "Job content is empty", "message": "Nothing to extract", "completed_at": _now()},
        )
        raise CallableError("invalid-argument", "Job content is empty.")

    run_id = claim_job(
        db,
        job_id,
        stale_after_sec=settings.job_stale_after_sec,
        message="Analyzing content and planning topics...",
    )
    if run_id is None:
        raise CallableError("failed-precondition", f"Job {job_id} is already being processed.")

    logger.info("Job %s claimed by %s (mode=%s, %d chars)", job_id, caller_id, job.mode, len(job.content))

    cards: list[dict[str, Any]] = []
    try:
        client = client or build_text_client()

        # 1) Outline
        topics = outline_topics(client, job.content, job.mode)
        total = len(topics)
        merge_job_fields(
            db,
            job_id,
            {
                "progress": PROGRESS_OUTLINED,
                "total_cards": total,
                "message": f"Outline ready: {total} topics. Generating cards...",
            },
            run_id=run_id,
        )
        logger.info("Job %s outline: %d topics", job_id, total)

        # 2) Expand topics sequentially; a failed card is skipped, not fatal
        base_time = _now()
        for i, topic in enumerate(topics):
            merge_job_fields(db, job_id, {"message": f"Generating card {i + 1}/{total}: {topic.title}"}, run_id=run_id)

            card = expand_topic(
                client,
                topic,
                job.content,
                job.mode,
                i,
                job_id=job_id,
                collection_id=job.target_collection_id,
                base_time=base_time,
            )

            patch: dict[str, Any] = {"progress": expansion_progress(i + 1, total)}
            if card is not None:
                cards.append(card.to_dict())
                patch["cards"] = cards
            merge_job_fields(db, job_id, patch, run_id=run_id)

        # 3) Persist into the owner's collection, then flip to completed
        merge_job_fields(db, job_id, {"message": f"Saving {len(cards)} cards to your collection..."}, run_id=run_id)
        saved = save_cards_to_collection(db, job.owner_id, job_id, cards)

        merge_job_fields(
            db,
            job_id,
            {
                "status": "completed",
                "progress": PROGRESS_DONE,
                "saved_count": saved,
                "completed_at": _now(),
                "message": completion_message(len(cards), total),
            },
            run_id=run_id,
        )
        logger.info("Job %s completed: %d/%d cards", job_id, len(cards), total)

    except JobSupersededError as e:
        # the job now belongs to a newer run; leave its state alone
        db.rollback()
        logger.warning("Job %s run %s stopped: %s", job_id, run_id, e)
        raise CallableError("failed-precondition", f"Job {job_id} was taken over by another run.") from e

    except Exception as e:
        db.rollback()
        logger.exception("Job %s failed", job_id)
        try:
            merge_job_fields(
                db,
                job_id,
                {"status": "failed", "error": str(e) or type(e).__name__, "message": "Extraction failed", "completed_at": _now()},
                run_id=run_id,
            )
        except Exception:
            logger.exception("Could not mark job %s as failed", job_id)
        raise CallableError("internal", f"Extraction failed: {e}") from e

    return {"cardCount": len(cards)}
