from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.api.account import router as account_router
from app.api.collection_cards import router as collection_cards_router
from app.api.engagement import router as engagement_router
from app.api.extraction_jobs import router as extraction_jobs_router
from app.api.proxy import router as proxy_router
from app.core.errors import CallableError
from app.core.logging import setup_logging
from app.db.session import get_db

setup_logging()

app = FastAPI(title="Knowledge Cards API", version="0.1.0")
app.include_router(proxy_router)
app.include_router(extraction_jobs_router)
app.include_router(collection_cards_router)
app.include_router(engagement_router)
app.include_router(account_router)


@app.exception_handler(CallableError)
async def callable_error_handler(request: Request, exc: CallableError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


class HealthResponse(BaseModel):
    ok: bool
    service: str
    version: str
    db_ok: bool


@app.get("/health", response_model=HealthResponse)
def health(db: Session = Depends(get_db)) -> HealthResponse:
    # lightweight DB check
    db_ok = False
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except Exception:
        db_ok = False

    return HealthResponse(ok=True, service="api", version=app.version, db_ok=db_ok)
