from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base_class import Base

JOB_STATUSES = ("pending", "processing", "completed", "failed")
TERMINAL_STATUSES = ("completed", "failed")


class ExtractionJob(Base):
    __tablename__ = "extraction_jobs"

    # caller-supplied, unique
    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    # source
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    target_collection_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    mode: Mapped[str] = mapped_column(String(32), nullable=False, default="standard")  # standard|simplified|rigorous|dialogue

    # status
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")  # pending|processing|completed|failed
    progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    # results
    total_cards: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    saved_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cards_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON string: [Card, ...]

    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # single-owner lease: token of the run holding the job, refreshed by every write
    run_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    heartbeat_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())
