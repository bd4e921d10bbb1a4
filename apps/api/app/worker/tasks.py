import logging

from sqlalchemy.orm import Session

from app.core.errors import CallableError
from app.core.logging import setup_logging
from app.db.session import SessionLocal
from app.services.extraction import run_extraction_job
from app.worker.celery_app import celery_app

setup_logging()
logger = logging.getLogger(__name__)


@celery_app.task(name="extraction.run_job")
def run_extraction_job_task(job_id: str, caller_id: str) -> dict:
    db: Session = SessionLocal()
    try:
        result = run_extraction_job(db, job_id, caller_id)
        return {"ok": True, "job_id": job_id, **result}
    except CallableError as e:
        if e.code == "internal":
            # job row already marked failed; keep raise for celery visibility
            raise
        logger.warning("Job %s rejected: %s %s", job_id, e.code, e.message)
        return {"ok": False, "job_id": job_id, "error": {"status": e.code, "message": e.message}}
    finally:
        db.close()
