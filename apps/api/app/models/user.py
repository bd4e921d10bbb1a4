from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # referrals
    referral_code: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    referred_by: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # security-question recovery
    security_question: Mapped[str | None] = mapped_column(String(512), nullable=True)
    security_answer_salt: Mapped[str | None] = mapped_column(String(64), nullable=True)
    security_answer_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)

    password_salt: Mapped[str | None] = mapped_column(String(64), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())
