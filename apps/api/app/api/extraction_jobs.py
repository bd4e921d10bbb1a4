from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_caller_id, get_text_client
from app.core.errors import CallableError
from app.db.session import get_db
from app.services.extraction import run_extraction_job
from app.services.job_dispatch import dispatch_job
from app.services.jobs import create_job, get_job, job_to_dict
from app.services.llm.client import TextClient
from app.services.llm.prompts import MODES

router = APIRouter(prefix="/extraction-jobs", tags=["extraction_jobs"])


class JobCreateRequest(BaseModel):
    jobId: str | None = None
    content: str = ""
    targetCollectionId: str | None = None
    mode: str = "standard"


class JobCreateResponse(BaseModel):
    ok: bool
    jobId: str
    status: str


class JobRunRequest(BaseModel):
    jobId: str | None = None


class JobRunResponse(BaseModel):
    success: bool
    jobId: str
    cardCount: int


class JobDispatchResponse(BaseModel):
    ok: bool
    jobId: str
    task_id: str


def _owned_job(db: Session, job_id: str, caller_id: str | None):
    if not caller_id:
        raise CallableError("unauthenticated", "You must be signed in.")
    job = get_job(db, job_id)
    if job is None:
        raise CallableError("not-found", f"Job {job_id} does not exist.")
    if job.owner_id != caller_id:
        raise CallableError("permission-denied", "This job belongs to another user.")
    return job


@router.post("", response_model=JobCreateResponse)
def create_extraction_job(
    req: JobCreateRequest,
    db: Session = Depends(get_db),
    caller_id: str | None = Depends(get_caller_id),
) -> JobCreateResponse:
    if not caller_id:
        raise CallableError("unauthenticated", "You must be signed in.")

    mode = (req.mode or "standard").strip().lower()
    if mode not in MODES:
        raise CallableError("invalid-argument", f"Unknown mode: {req.mode}. Use one of: {', '.join(MODES)}")

    job_id = (req.jobId or "").strip() or uuid.uuid4().hex
    if get_job(db, job_id) is not None:
        raise CallableError("invalid-argument", f"Job {job_id} already exists.")

    job = create_job(
        db,
        job_id=job_id,
        owner_id=caller_id,
        content=req.content,
        target_collection_id=req.targetCollectionId,
        mode=mode,
    )
    return JobCreateResponse(ok=True, jobId=job.id, status=job.status)


@router.post("/run", response_model=JobRunResponse)
def run_job(
    req: JobRunRequest,
    db: Session = Depends(get_db),
    caller_id: str | None = Depends(get_caller_id),
    client: TextClient = Depends(get_text_client),
) -> JobRunResponse:
    """
    Runs the whole job inside this request. The client may disconnect; the run
    continues and the job document keeps reporting progress.
    """
    result = run_extraction_job(db, req.jobId, caller_id, client=client)
    return JobRunResponse(success=True, jobId=req.jobId or "", cardCount=result["cardCount"])


@router.get("/{job_id}")
def get_extraction_job(
    job_id: str,
    db: Session = Depends(get_db),
    caller_id: str | None = Depends(get_caller_id),
):
    job = _owned_job(db, job_id, caller_id)
    return {"ok": True, "job": job_to_dict(job)}


@router.post("/{job_id}/dispatch", response_model=JobDispatchResponse)
def dispatch_extraction_job(
    job_id: str,
    db: Session = Depends(get_db),
    caller_id: str | None = Depends(get_caller_id),
) -> JobDispatchResponse:
    job = _owned_job(db, job_id, caller_id)
    if job.status != "pending":
        raise CallableError("failed-precondition", f"Job {job_id} is {job.status}, not pending.")

    async_result = dispatch_job("extract_cards", {"job_id": job_id, "caller_id": caller_id})
    return JobDispatchResponse(ok=True, jobId=job_id, task_id=async_result.id)
