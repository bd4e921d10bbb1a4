from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_caller_id
from app.db.session import get_db
from app.services.account_recovery import get_security_question, reset_password, set_security_question

router = APIRouter(prefix="/account", tags=["account"])


class SecurityQuestionRequest(BaseModel):
    question: str
    answer: str


class ResetPasswordRequest(BaseModel):
    userId: str
    answer: str
    newPassword: str


@router.post("/security-question")
def save_security_question(
    req: SecurityQuestionRequest,
    db: Session = Depends(get_db),
    caller_id: str | None = Depends(get_caller_id),
):
    set_security_question(db, caller_id, req.question, req.answer)
    return {"ok": True}


@router.get("/security-question/{user_id}")
def read_security_question(user_id: str, db: Session = Depends(get_db)):
    return {"ok": True, "question": get_security_question(db, user_id)}


# no caller identity: the user is locked out
@router.post("/reset-password")
def reset_password_with_answer(req: ResetPasswordRequest, db: Session = Depends(get_db)):
    reset_password(db, req.userId, req.answer, req.newPassword)
    return {"ok": True}
