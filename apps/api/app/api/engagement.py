from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_caller_id
from app.db.session import get_db
from app.services.engagement import (
    claim_daily_checkin,
    get_referral_code,
    record_share_interaction,
    redeem_referral,
)

router = APIRouter(tags=["engagement"])


class CheckInRequest(BaseModel):
    dateKey: str


class RedeemReferralRequest(BaseModel):
    code: str


@router.post("/shares/{share_id}/{kind}")
def share_interaction(
    share_id: str,
    kind: str,
    db: Session = Depends(get_db),
    caller_id: str | None = Depends(get_caller_id),
):
    stats = record_share_interaction(db, share_id, kind, caller_id)
    return {"ok": True, **stats}


@router.post("/check-in")
def daily_check_in(
    req: CheckInRequest,
    db: Session = Depends(get_db),
    caller_id: str | None = Depends(get_caller_id),
):
    return {"ok": True, **claim_daily_checkin(db, caller_id, req.dateKey)}


@router.get("/referrals/code")
def my_referral_code(db: Session = Depends(get_db), caller_id: str | None = Depends(get_caller_id)):
    return {"ok": True, "code": get_referral_code(db, caller_id)}


@router.post("/referrals/redeem")
def redeem(
    req: RedeemReferralRequest,
    db: Session = Depends(get_db),
    caller_id: str | None = Depends(get_caller_id),
):
    return redeem_referral(db, caller_id, req.code)
