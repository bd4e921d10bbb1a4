from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, String, Text, func

from app.db.base_class import Base


class CollectionCard(Base):
    """A card saved into an owner's personal collection."""

    __tablename__ = "collection_cards"

    owner_id = Column(String(128), primary_key=True)
    card_id = Column(String(160), primary_key=True)

    collection_id = Column(String(128), nullable=True, index=True)
    source_job_id = Column(String(128), nullable=True, index=True)
    auto_saved = Column(Boolean, nullable=False, default=False)

    data_json = Column(Text, nullable=False)  # JSON string: full card dict

    # synthetic creation time; sorting by it yields generation order
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    saved_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
