"""Repository layer: all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains pipeline logic.
"""

from adcast.repositories.advertiser_repository import AdvertiserRepository
from adcast.repositories.advertising_repository import AdvertisingRepository
from adcast.repositories.audio_repository import AudioRepository
from adcast.repositories.condition_rule_repository import ConditionRuleRepository
from adcast.repositories.government_data_repository import GovernmentDataRepository
from adcast.repositories.storage import PipelineStorage, storage_factory_for

__all__ = [
    "AdvertiserRepository",
    "AdvertisingRepository",
    "AudioRepository",
    "ConditionRuleRepository",
    "GovernmentDataRepository",
    "PipelineStorage",
    "storage_factory_for",
]
