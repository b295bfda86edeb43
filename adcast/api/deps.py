"""API-layer dependency functions.

Re-exports all dependency factories from ``adcast.dependencies`` so that
endpoint modules only need to import from ``adcast.api.deps``.
"""

from adcast.dependencies import (
    # Repository factories
    get_advertising_repo,
    get_audio_repo,
    get_government_data_repo,
    # Service factories
    get_pipeline_service,
    get_government_data_service,
    get_storage_factory,
    # Redis
    get_redis_client,
)

__all__ = [
    "get_advertising_repo",
    "get_audio_repo",
    "get_government_data_repo",
    "get_pipeline_service",
    "get_government_data_service",
    "get_storage_factory",
    "get_redis_client",
]
