from app.db.base_class import Base  # noqa: F401

# Import all the models here so that Base has them registered
# This file should NOT be imported by models.
from app.models.job import ExtractionJob  # noqa: F401
from app.models.collection_card import CollectionCard  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.engagement import DailyCheckIn, ShareInteraction, ShareStat  # noqa: F401
