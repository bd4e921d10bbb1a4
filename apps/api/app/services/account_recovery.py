from __future__ import annotations

import hashlib
import hmac
import secrets

from sqlalchemy.orm import Session

from app.core.errors import CallableError
from app.models.user import User

MIN_ANSWER_LEN = 2
MIN_PASSWORD_LEN = 6


def normalize_answer(answer: str) -> str:
    # case/space-insensitive so "  Paris " matches "paris"
    return " ".join((answer or "").split()).lower()


# scrypt cost parameters (~16 MiB per hash)
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1


def hash_secret(value: str, salt: str) -> str:
    digest = hashlib.scrypt(
        value.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=32,
    )
    return digest.hex()


def _new_salt() -> str:
    return secrets.token_hex(16)


def set_security_question(db: Session, caller_id: str | None, question: str, answer: str) -> None:
    if not caller_id:
        raise CallableError("unauthenticated", "You must be signed in.")
    question = (question or "").strip()
    answer = normalize_answer(answer)
    if not question:
        raise CallableError("invalid-argument", "A security question is required.")
    if len(answer) < MIN_ANSWER_LEN:
        raise CallableError("invalid-argument", f"The answer must be at least {MIN_ANSWER_LEN} characters.")

    user = db.get(User, caller_id)
    if not user:
        user = User(id=caller_id, credits=0)
        db.add(user)

    salt = _new_salt()
    user.security_question = question
    user.security_answer_salt = salt
    user.security_answer_hash = hash_secret(answer, salt)
    db.commit()


def get_security_question(db: Session, user_id: str) -> str:
    user = db.get(User, user_id) if user_id else None
    if not user or not user.security_question:
        raise CallableError("not-found", "No security question is set for this account.")
    return user.security_question


def reset_password(db: Session, user_id: str, answer: str, new_password: str) -> None:
    """
    Security-question password reset: salted hash comparison of the normalized answer.
    """
    if not user_id:
        raise CallableError("invalid-argument", "userId is required.")
    answer = normalize_answer(answer)
    if len(answer) < MIN_ANSWER_LEN:
        raise CallableError("invalid-argument", f"The answer must be at least {MIN_ANSWER_LEN} characters.")
    if len(new_password or "") < MIN_PASSWORD_LEN:
        raise CallableError("invalid-argument", f"The new password must be at least {MIN_PASSWORD_LEN} characters.")

    user = db.get(User, user_id)
    if not user or not user.security_answer_hash or not user.security_answer_salt:
        raise CallableError("not-found", "No security question is set for this account.")

    expected = user.security_answer_hash
    actual = hash_secret(answer, user.security_answer_salt)
    if not hmac.compare_digest(expected, actual):
        raise CallableError("permission-denied", "The security answer is incorrect.")

    salt = _new_salt()
    user.password_salt = salt
    user.password_hash = hash_secret(new_password, salt)
    db.commit()
