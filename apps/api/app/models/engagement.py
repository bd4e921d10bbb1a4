from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint, func

from app.db.base_class import Base


class ShareStat(Base):
    __tablename__ = "share_stats"

    share_id = Column(String(128), primary_key=True)

    clicks = Column(Integer, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)
    saves = Column(Integer, nullable=False, default=0)
    likes = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class ShareInteraction(Base):
    __tablename__ = "share_interactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    share_id = Column(String(128), nullable=False, index=True)
    user_id = Column(String(128), nullable=False)

    # click | view | save | like
    kind = Column(String(16), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("share_id", "user_id", "kind", name="uq_share_interaction"),
    )


class DailyCheckIn(Base):
    __tablename__ = "daily_checkins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)
    date_key = Column(String(10), nullable=False)  # YYYY-MM-DD, caller's calendar date
    credits_awarded = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "date_key", name="uq_checkin_user_date"),
    )
