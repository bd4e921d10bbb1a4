from __future__ import annotations

import secrets
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import CallableError
from app.models.engagement import DailyCheckIn, ShareInteraction, ShareStat
from app.models.user import User

# interaction kind -> counter column on ShareStat
SHARE_COUNTERS = {
    "click": "clicks",
    "view": "views",
    "save": "saves",
    "like": "likes",
}


def _share_stats_dict(stat: ShareStat) -> dict[str, Any]:
    return {
        "shareId": stat.share_id,
        "clicks": stat.clicks or 0,
        "views": stat.views or 0,
        "saves": stat.saves or 0,
        "likes": stat.likes or 0,
    }


def _get_or_create_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if not user:
        user = User(id=user_id, credits=0)
        db.add(user)
        db.flush()
    return user


def record_share_interaction(db: Session, share_id: str, kind: str, caller_id: str | None) -> dict[str, Any]:
    """
    Bump one share counter.
    - With a caller id: counted once per (share, caller, kind)
    - Anonymous: always counted
    """
    column = SHARE_COUNTERS.get(kind)
    if not column:
        raise CallableError("invalid-argument", f"Unknown interaction: {kind}. Use one of: {', '.join(SHARE_COUNTERS)}")
    if not share_id:
        raise CallableError("invalid-argument", "shareId is required.")

    stat = db.get(ShareStat, share_id)
    if not stat:
        stat = ShareStat(share_id=share_id, clicks=0, views=0, saves=0, likes=0)
        db.add(stat)
        db.flush()

    counted = True
    if caller_id:
        exists = (
            db.query(ShareInteraction)
            .filter(
                ShareInteraction.share_id == share_id,
                ShareInteraction.user_id == caller_id,
                ShareInteraction.kind == kind,
            )
            .first()
        )
        if exists:
            counted = False
        else:
            db.add(ShareInteraction(share_id=share_id, user_id=caller_id, kind=kind))

    if counted:
        setattr(stat, column, int(getattr(stat, column) or 0) + 1)

    try:
        db.commit()
    except IntegrityError:
        # a concurrent request recorded the same (share, caller, kind) first
        db.rollback()
        counted = False
        stat = db.get(ShareStat, share_id)
        if stat is None:
            return record_share_interaction(db, share_id, kind, caller_id)

    db.refresh(stat)
    return {"counted": counted, **_share_stats_dict(stat)}


def claim_daily_checkin(db: Session, caller_id: str | None, date_key: str) -> dict[str, Any]:
    """
    One claim per caller per calendar date (date_key = caller's local YYYY-MM-DD).
    """
    if not caller_id:
        raise CallableError("unauthenticated", "You must be signed in to check in.")
    if not date_key or len(date_key) != 10 or date_key[4] != "-" or date_key[7] != "-":
        raise CallableError("invalid-argument", "dateKey must look like YYYY-MM-DD.")

    user = _get_or_create_user(db, caller_id)

    already = (
        db.query(DailyCheckIn)
        .filter(DailyCheckIn.user_id == caller_id, DailyCheckIn.date_key == date_key)
        .first()
    )
    if already:
        return {"claimed": False, "credits": user.credits, "dateKey": date_key}

    award = settings.daily_checkin_credits
    db.add(DailyCheckIn(user_id=caller_id, date_key=date_key, credits_awarded=award))
    user.credits = int(user.credits or 0) + award
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        user = _get_or_create_user(db, caller_id)
        return {"claimed": False, "credits": user.credits, "dateKey": date_key}

    db.refresh(user)
    return {"claimed": True, "awarded": award, "credits": user.credits, "dateKey": date_key}


def get_referral_code(db: Session, caller_id: str | None) -> str:
    if not caller_id:
        raise CallableError("unauthenticated", "You must be signed in.")
    user = _get_or_create_user(db, caller_id)
    if not user.referral_code:
        user.referral_code = secrets.token_hex(4).upper()
        db.commit()
        db.refresh(user)
    return user.referral_code


def redeem_referral(db: Session, caller_id: str | None, code: str) -> dict[str, Any]:
    """
    Credit both the referrer and the caller once. A user can be referred only once.
    """
    if not caller_id:
        raise CallableError("unauthenticated", "You must be signed in.")
    code = (code or "").strip().upper()
    if not code:
        raise CallableError("invalid-argument", "Referral code is required.")

    referrer = db.query(User).filter(User.referral_code == code).first()
    if not referrer:
        raise CallableError("not-found", "Referral code not found.")
    if referrer.id == caller_id:
        raise CallableError("failed-precondition", "You cannot redeem your own referral code.")

    user = _get_or_create_user(db, caller_id)
    if user.referred_by:
        raise CallableError("failed-precondition", "A referral code was already redeemed for this account.")

    bonus = settings.referral_credits
    user.referred_by = referrer.id
    user.credits = int(user.credits or 0) + bonus
    referrer.credits = int(referrer.credits or 0) + bonus
    db.commit()
    db.refresh(user)
    return {"ok": True, "awarded": bonus, "credits": user.credits, "referrerId": referrer.id}
