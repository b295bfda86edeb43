from fastapi import APIRouter

from adcast.api.v1.endpoints import advertising, audio, government_data, health, pipeline

router = APIRouter(prefix="/api/v1")

router.include_router(pipeline.router)
router.include_router(advertising.router)
router.include_router(audio.router)
router.include_router(government_data.router)
router.include_router(health.router)
