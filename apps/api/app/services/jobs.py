from __future__ import annotations

import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import and_, func, or_, update
from sqlalchemy.orm import Session

from app.models.collection_card import CollectionCard
from app.models.job import TERMINAL_STATUSES, ExtractionJob


class JobFinishedError(RuntimeError):
    """The job is already completed/failed; terminal jobs are never written again."""


class JobSupersededError(RuntimeError):
    """Another run re-claimed the job; writes carrying the old run token are rejected."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_job(
    db: Session,
    job_id: str,
    owner_id: str,
    content: str,
    target_collection_id: str | None,
    mode: str,
) -> ExtractionJob:
    job = ExtractionJob(
        id=job_id,
        owner_id=owner_id,
        content=content or "",
        target_collection_id=target_collection_id,
        mode=mode,
        status="pending",
        progress=0.0,
        message="Waiting to start",
        cards_json="[]",
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def get_job(db: Session, job_id: str) -> ExtractionJob | None:
    # populate_existing: column updates below bypass the identity map
    return db.get(ExtractionJob, job_id, populate_existing=True)


def merge_job_fields(db: Session, job_id: str, patch: dict[str, Any], *, run_id: str | None = None) -> None:
    """
    Column-scoped merge-update of one job row.
    - Only the columns named in patch are written, plus the heartbeat_at lease
    - "cards" (list of card dicts) is stored as cards_json
    - Refuses to touch a job that is already terminal
    - With run_id: refuses to touch a job another run has re-claimed
    """
    values = dict(patch or {})
    if "cards" in values:
        values["cards_json"] = json.dumps(values.pop("cards"), ensure_ascii=False)
    values.setdefault("heartbeat_at", _now())

    conditions = [ExtractionJob.id == job_id, ExtractionJob.status.not_in(TERMINAL_STATUSES)]
    if run_id is not None:
        conditions.append(ExtractionJob.run_id == run_id)

    result = db.execute(
        update(ExtractionJob)
        .where(*conditions)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    db.commit()

    if result.rowcount == 0:
        job = get_job(db, job_id)
        if job is None:
            raise LookupError(f"Job not found: {job_id}")
        if job.status in TERMINAL_STATUSES:
            raise JobFinishedError(f"Job {job_id} is already finished")
        raise JobSupersededError(f"Job {job_id} was re-claimed by another run")


def claim_job(db: Session, job_id: str, *, stale_after_sec: int, message: str) -> str | None:
    """
    Compare-and-set pending -> processing. Returns the new run token, or None
    when another live run owns the job.

    Every write of the owning run refreshes heartbeat_at. A job left in
    "processing" by a run that died (platform timeout) can be re-claimed once
    its last heartbeat is older than stale_after_sec.
    """
    now = _now()
    stale_before = now - timedelta(seconds=stale_after_sec)
    last_seen = func.coalesce(ExtractionJob.heartbeat_at, ExtractionJob.started_at)
    run_id = uuid.uuid4().hex

    result = db.execute(
        update(ExtractionJob)
        .where(
            ExtractionJob.id == job_id,
            or_(
                ExtractionJob.status == "pending",
                and_(
                    ExtractionJob.status == "processing",
                    or_(last_seen.is_(None), last_seen < stale_before),
                ),
            ),
        )
        .values(
            status="processing",
            progress=0.1,
            message=message,
            error=None,
            started_at=now,
            heartbeat_at=now,
            run_id=run_id,
            cards_json="[]",
            total_cards=0,
            saved_count=0,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return run_id if result.rowcount == 1 else None


def load_cards(job: ExtractionJob) -> list[dict[str, Any]]:
    try:
        cards = json.loads(job.cards_json or "[]")
    except Exception:
        return []
    return cards if isinstance(cards, list) else []


def save_cards_to_collection(db: Session, owner_id: str, job_id: str, cards: list[dict[str, Any]]) -> int:
    """
    Write every card into the owner's collection in one transaction (all or nothing).
    Rows are keyed by (owner_id, card_id), so re-running overwrites.
    """
    try:
        for c in cards:
            data = {**c, "sourceJobId": job_id, "autoSaved": True}
            db.merge(
                CollectionCard(
                    owner_id=owner_id,
                    card_id=c["id"],
                    collection_id=c.get("collectionId"),
                    source_job_id=job_id,
                    auto_saved=True,
                    data_json=json.dumps(data, ensure_ascii=False),
                    created_at=datetime.fromisoformat(c["createdAt"]),
                )
            )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return len(cards)


def list_collection_cards(db: Session, owner_id: str, collection_id: str | None = None) -> list[dict[str, Any]]:
    q = db.query(CollectionCard).filter(CollectionCard.owner_id == owner_id)
    if collection_id:
        q = q.filter(CollectionCard.collection_id == collection_id)

    out: list[dict[str, Any]] = []
    for row in q.order_by(CollectionCard.created_at.asc(), CollectionCard.card_id.asc()).all():
        try:
            out.append(json.loads(row.data_json))
        except Exception:
            continue
    return out


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def job_to_dict(job: ExtractionJob) -> dict[str, Any]:
    return {
        "id": job.id,
        "ownerId": job.owner_id,
        "targetCollectionId": job.target_collection_id,
        "mode": job.mode,
        "status": job.status,
        "progress": job.progress,
        "message": job.message,
        "error": job.error,
        "totalCards": job.total_cards,
        "savedCount": job.saved_count,
        "cards": load_cards(job),
        "startedAt": _iso(job.started_at),
        "completedAt": _iso(job.completed_at),
        "createdAt": _iso(job.created_at),
        "updatedAt": _iso(job.updated_at),
    }
