from typing import Dict

# Named synthesis profiles keyed by rule category. Order matters: the
# partial-type lookup walks this mapping front to back.
VOICE_PROFILES: Dict[str, Dict[str, float | bool]] = {
    # Weather
    "weather-alert": {"stability": 0.8, "similarity_boost": 0.9, "style": 0.3, "use_speaker_boost": True, "speed": 1.0},
    "weather-sunny": {"stability": 0.5, "similarity_boost": 0.7, "style": 0.6, "use_speaker_boost": True, "speed": 0.9},
    "weather-rainy": {"stability": 0.7, "similarity_boost": 0.8, "style": 0.4, "use_speaker_boost": True, "speed": 1.0},
    # Traffic
    "traffic-update": {"stability": 0.6, "similarity_boost": 0.8, "style": 0.5, "use_speaker_boost": True, "speed": 1.2},
    "traffic-jam": {"stability": 0.7, "similarity_boost": 0.8, "style": 0.4, "use_speaker_boost": True, "speed": 1.1},
    "traffic-clear": {"stability": 0.4, "similarity_boost": 0.7, "style": 0.7, "use_speaker_boost": True, "speed": 0.9},
    # Air quality
    "air-quality": {"stability": 0.8, "similarity_boost": 0.9, "style": 0.2, "use_speaker_boost": True, "speed": 1.0},
    "air-quality-good": {"stability": 0.5, "similarity_boost": 0.7, "style": 0.6, "use_speaker_boost": True, "speed": 0.9},
    "air-quality-poor": {"stability": 0.8, "similarity_boost": 0.9, "style": 0.3, "use_speaker_boost": True, "speed": 1.0},
    # Promotional
    "promotional": {"stability": 0.4, "similarity_boost": 0.7, "style": 0.8, "use_speaker_boost": True, "speed": 0.9},
    "promotional-sale": {"stability": 0.3, "similarity_boost": 0.6, "style": 0.9, "use_speaker_boost": True, "speed": 0.8},
    "promotional-event": {"stability": 0.4, "similarity_boost": 0.7, "style": 0.8, "use_speaker_boost": True, "speed": 0.9},
    # Time of day
    "time-morning": {"stability": 0.6, "similarity_boost": 0.8, "style": 0.5, "use_speaker_boost": True, "speed": 0.9},
    "time-evening": {"stability": 0.7, "similarity_boost": 0.8, "style": 0.4, "use_speaker_boost": True, "speed": 1.0},
    "time-night": {"stability": 0.8, "similarity_boost": 0.9, "style": 0.2, "use_speaker_boost": True, "speed": 1.1},
    # Emergency
    "emergency": {"stability": 0.9, "similarity_boost": 1.0, "style": 0.1, "use_speaker_boost": True, "speed": 1.2},
    "flood-alert": {"stability": 0.9, "similarity_boost": 0.95, "style": 0.2, "use_speaker_boost": True, "speed": 1.1},
    # Fallback
    "default": {"stability": 0.6, "similarity_boost": 0.8, "style": 0.5, "use_speaker_boost": True, "speed": 1.0},
}

DEFAULT_PROFILE_KEY = "default"
