from app.models.job import ExtractionJob
from app.models.collection_card import CollectionCard
from app.models.user import User
from app.models.engagement import DailyCheckIn, ShareInteraction, ShareStat  # noqa: F401

__all__ = ["ExtractionJob", "CollectionCard", "User"]
