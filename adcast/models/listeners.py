from datetime import datetime, timezone
from sqlalchemy import event

from adcast.models.advertising import AdvertisingRecord


# Auto updated_at
@event.listens_for(AdvertisingRecord, "before_update")
def update_timestamp(mapper, connection, target):
    target.updated_at = datetime.now(timezone.utc)
