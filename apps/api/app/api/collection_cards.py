from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_caller_id
from app.core.errors import CallableError
from app.db.session import get_db
from app.services.jobs import list_collection_cards

router = APIRouter(prefix="/collections", tags=["collections"])


@router.get("/cards")
def list_my_cards(
    db: Session = Depends(get_db),
    caller_id: str | None = Depends(get_caller_id),
    collectionId: str | None = Query(default=None),
):
    if not caller_id:
        raise CallableError("unauthenticated", "You must be signed in.")
    cards = list_collection_cards(db, caller_id, collection_id=collectionId)
    return {"ok": True, "total": len(cards), "cards": cards}
