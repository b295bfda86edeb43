from typing import Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    DATABASE_URL: str
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Redis configuration for caching and the pipeline run-lock
    REDIS_URL: str = "redis://localhost:6379/0"

    # CORS configuration, comma-separated origins
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5000"

    # ElevenLabs text-to-speech
    ELEVENLABS_API_KEY: Optional[str] = None
    ELEVENLABS_MODEL_ID: str = "eleven_multilingual_v2"
    ELEVENLABS_OUTPUT_FORMAT: str = "mp3_44100_128"
    ELEVENLABS_MALE_VOICE_ID: str = "JBFqnCBsd6RMkjVDRZzb"
    ELEVENLABS_FEMALE_VOICE_ID: str = "21m00Tcm4TlvDq8ikWAM"

    # Gemini script generation
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_TIMEOUT_SECONDS: float = 30.0
    # Use a template script instead of failing the record on Gemini errors
    SCRIPT_FALLBACK_ON_ERROR: bool = False

    # Generated audio is written here and served under AUDIO_URL_PREFIX
    AUDIO_OUTPUT_DIR: str = "public/audio"
    AUDIO_URL_PREFIX: str = "/audio"
    LOCAL_TIMEZONE: str = "Asia/Singapore"
    DEFAULT_HUMIDITY_PERCENT: float = 50.0

    # Pipeline behaviour
    PIPELINE_RECORD_DELAY_SECONDS: float = 5.0
    PIPELINE_LOCK_TTL_SECONDS: int = 1800
    PIPELINE_LOCK_WAIT_SECONDS: float = 10.0
    PIPELINE_STATS_CACHE_TTL: int = 30
    PIPELINE_MAX_RETRY_ATTEMPTS: int = 0  # 0 = unlimited

    # Government data ingestion
    INGESTION_ENABLED: bool = False
    INGESTION_INTERVAL_SECONDS: int = 900
    GOVERNMENT_DATA_BASE_URL: str = "https://api.data.gov.sg/v1/environment"
    GOVERNMENT_DATA_TIMEOUT_SECONDS: float = 10.0


settings = Settings()
