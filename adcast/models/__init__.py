from adcast.models.base import Base
from adcast.models.advertiser import Advertiser
from adcast.models.condition_rule import ConditionRule
from adcast.models.advertising import AdvertisingRecord
from adcast.models.audio import Audio
from adcast.models.government_data import GovernmentData

# Import event listeners to register them
from adcast.models import listeners  # noqa: F401

__all__ = [
    "Base",
    "Advertiser",
    "ConditionRule",
    "AdvertisingRecord",
    "Audio",
    "GovernmentData",
]
