from typing import Dict, FrozenSet, List

from adcast.schemas.common import AdvertisingStatus, VoiceStyle

ADVERTISING_STATUSES: FrozenSet[str] = frozenset(s.value for s in AdvertisingStatus)

# Terminal states, reached once per processing attempt
TERMINAL_STATUSES: FrozenSet[str] = frozenset({"Done", "Failed"})

# Re-applying the current status is always allowed (idempotent), so the
# lists below only name transitions to a *different* status.
ALLOWED_TRANSITIONS: Dict[str, List[str]] = {
    "Pending": ["Done", "Failed"],
    "Failed": ["Pending"],
    "Done": [],  # terminal
}

VOICE_STYLES: FrozenSet[str] = frozenset(s.value for s in VoiceStyle)

ADVERTISER_ACTIVE_STATUS: str = "Active"

# Business types that default to a female voice when the script
# generator does not pick a valid style.
FEMALE_VOICE_BUSINESS_TYPES: List[str] = [
    "Coffee shop",
    "Restaurant",
    "Mall",
    "Beauty",
    "Fashion",
    "Healthcare",
]

# Rough bitrate of the configured mp3 output, used to estimate duration
AUDIO_BITRATE_BPS: int = 128_000

LOCATION_NAME: str = "Singapore"
