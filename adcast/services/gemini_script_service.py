import asyncio
import json
import logging
import re
from typing import Any, Dict, Optional

from google import genai

from adcast.core.config import settings
from adcast.core.constants import FEMALE_VOICE_BUSINESS_TYPES, VOICE_STYLES
from adcast.core.exceptions import (
    ScriptGenerationError,
    ScriptGeneratorNotConfiguredError,
)
from adcast.schemas.common import VoiceStyle
from adcast.schemas.pipeline import ScriptResult

logger = logging.getLogger(__name__)

_THINK_BLOCK = re.compile(r"<think>[\s\S]*?</think>")
_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_FIRST_OBJECT = re.compile(r"\{[\s\S]*?\}")

_SYSTEM_PROMPT = """Create a short promotional script for Singapore businesses based on weather conditions.

Rules:
- Write exactly 2-3 sentences
- Be polite and friendly
- Include the business name
- Reference the weather condition
- Add a gentle call-to-action

Response format - JSON only:
{
  "script": "Your 2-3 sentence script here",
  "voiceStyle": "male" or "female"
}

Voice style: Use "female" for cafes/restaurants/retail, "male" for gyms/tech/automotive."""

RULE_INTERPRETATIONS: Dict[str, str] = {
    "very_hot_singapore": "Very hot weather in Singapore (above 32°C) - people are seeking cooling relief",
    "hot_humid_mall": "Hot and humid conditions in shopping mall environment - visitors need air-conditioned comfort",
    "rainy_singapore": "Rainy weather in Singapore - people seeking shelter and warmth",
    "hazy_singapore": "Hazy/polluted air conditions in Singapore - people prefer clean indoor environments",
    "cool_morning_singapore": "Cool morning weather in Singapore - pleasant conditions for activities",
    "humid_afternoon": "Humid afternoon conditions - people need refreshing relief",
    "thunderstorm_singapore": "Thunderstorm weather - people seeking safe indoor shelter",
    "weekend_hot": "Hot weekend weather - people looking for leisure activities with cooling",
    "lunch_time_heat": "Hot weather during lunch time - office workers need cooling relief",
}

# Per business type: hot / rainy / hazy / default wording
_CONTEXTUAL_SCRIPTS: Dict[str, Dict[str, str]] = {
    "Restaurant": {
        "hot": "Escape the Singapore heat at {name}. Enjoy fresh, delicious meals in our cool, air-conditioned dining space. Perfect for beating the hot weather.",
        "rainy": "Take shelter from the rain at {name}. Enjoy a warm, satisfying meal while staying dry and comfortable. Great food, perfect timing.",
        "hazy": "Breathe easy at {name} with our clean, air-filtered dining environment. Fresh ingredients and fresh air make every meal special.",
        "default": "Visit {name} for an exceptional dining experience. Our fresh ingredients and authentic flavors will delight your taste buds.",
    },
    "Coffee shop": {
        "hot": "Cool down at {name} with our iced beverages and air-conditioned comfort. Fresh coffee and pastries in a refreshingly cool space.",
        "rainy": "Warm up at {name} while the rain pours outside. Hot coffee, cozy atmosphere, and delicious pastries await you.",
        "hazy": "Enjoy clean air and fresh coffee at {name}. Our filtered indoor environment serves the perfect brew in comfortable surroundings.",
        "default": "Start your day right at {name}. We serve freshly brewed coffee and delicious pastries in a cozy atmosphere.",
    },
    "Gym": {
        "hot": "Beat the heat with our air-conditioned fitness facilities at {name}. Cool, comfortable workouts with state-of-the-art equipment.",
        "rainy": "Don't let the rain stop your fitness goals. {name} offers indoor training with expert guidance and modern equipment.",
        "hazy": "Exercise in clean, filtered air at {name}. Our indoor facilities provide the perfect environment for your fitness journey.",
        "default": "Transform your fitness journey at {name}. Our state-of-the-art equipment and expert trainers are here to help.",
    },
    "Mall": {
        "hot": "Escape the heat at {name}. Enjoy cool, air-conditioned shopping with amazing deals across all our stores.",
        "rainy": "Stay dry and shop comfortably at {name}. All your favorite stores under one roof, perfect for rainy day shopping.",
        "hazy": "Breathe easy while you shop at {name}. Our climate-controlled environment offers comfortable shopping with clean, filtered air.",
        "default": "Discover amazing deals and experiences at {name}. From shopping to dining, everything you need under one roof.",
    },
    "Fast Food": {
        "hot": "Cool down with refreshing meals at {name}. Quick service, cold drinks, and air-conditioned comfort when you need it most.",
        "rainy": "Quick, warm meals at {name} while you wait out the rain. Fast service and cozy indoor seating available.",
        "hazy": "Fresh, fast food in clean indoor air at {name}. Quick service and comfortable dining away from the hazy conditions.",
        "default": "Craving something delicious? {name} serves fresh, fast, and flavorful meals with unbeatable value.",
    },
}


def default_voice_style(business_type: str) -> VoiceStyle:
    """Female for cafes, restaurants and retail-like types; male otherwise."""
    lowered = (business_type or "").lower()
    for candidate in FEMALE_VOICE_BUSINESS_TYPES:
        if candidate.lower() in lowered:
            return VoiceStyle.female
    return VoiceStyle.male


def interpret_rule_id(rule_id: str) -> str:
    return RULE_INTERPRETATIONS.get(
        rule_id,
        f"Environmental condition: {rule_id.replace('_', ' ')} - adapt messaging accordingly",
    )


def fallback_script(display_name: str, business_type: str, rule_id: str) -> ScriptResult:
    """Template script picked from the rule's weather flavour."""
    is_hot = "hot" in rule_id or "humid" in rule_id
    is_rainy = "rainy" in rule_id or "thunderstorm" in rule_id
    is_hazy = "hazy" in rule_id

    templates = _CONTEXTUAL_SCRIPTS.get(business_type)
    if templates is None:
        weather = "heat" if is_hot else "rain" if is_rainy else "weather"
        script = (
            f"Beat the {weather} at {display_name}. Our comfortable, air-conditioned "
            "space offers quality service and exceptional value. Visit us today and "
            "see what makes us special."
        )
    elif is_hot:
        script = templates["hot"].format(name=display_name)
    elif is_rainy:
        script = templates["rainy"].format(name=display_name)
    elif is_hazy:
        script = templates["hazy"].format(name=display_name)
    else:
        script = templates["default"].format(name=display_name)

    return ScriptResult(script=script, voice_style=default_voice_style(business_type))


def parse_script_response(
    text: str, display_name: str, business_type: str
) -> ScriptResult:
    """Pull ``{script, voiceStyle}`` out of a free-form model reply.

    Falls back to a generic template when no usable JSON is found, and
    to the business-type default when the voice style is not valid.
    """
    cleaned = _THINK_BLOCK.sub("", text.strip())
    payload: Optional[Dict[str, Any]] = None
    try:
        fenced = _JSON_FENCE.search(cleaned)
        if fenced:
            payload = json.loads(fenced.group(1).strip())
        else:
            found = _FIRST_OBJECT.search(cleaned)
            if not found:
                raise ValueError("No JSON found in response")
            payload = json.loads(found.group(0))
        if not payload.get("script") or not payload.get("voiceStyle"):
            raise ValueError("Invalid JSON format - missing required fields")
    except (ValueError, AttributeError) as exc:
        logger.warning(
            "Failed to parse script JSON (%s); raw response: %.300s", exc, text
        )
        return ScriptResult(
            script=(
                f"Visit {display_name} for great {business_type.lower()} experience. "
                "Perfect for current weather conditions. Come and enjoy our services today!"
            ),
            voice_style=default_voice_style(business_type),
        )

    voice_style = payload["voiceStyle"]
    if voice_style not in VOICE_STYLES:
        voice_style = default_voice_style(business_type)
    return ScriptResult(script=str(payload["script"]), voice_style=voice_style)


class GeminiScriptService:
    """Generate promotional scripts with Google Gemini.

    The SDK call is blocking, so it runs in a worker thread bounded by
    ``GEMINI_TIMEOUT_SECONDS``.  Provider failures raise
    ``ScriptGenerationError``; unparseable replies do not.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[Any] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model_name = model_name or settings.GEMINI_MODEL
        self._timeout = (
            timeout_seconds
            if timeout_seconds is not None
            else settings.GEMINI_TIMEOUT_SECONDS
        )
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise ScriptGeneratorNotConfiguredError()
            self._client = genai.Client(api_key=self._api_key)
            logger.info("Gemini client initialised with model %s", self.model_name)
        return self._client

    @staticmethod
    def build_prompt(
        display_name: str, business_type: str, rule_id: str, current_time: str
    ) -> str:
        return (
            f"{_SYSTEM_PROMPT}\n\n"
            f"Business: {display_name}\n"
            f"Type: {business_type}\n"
            f"Weather: {rule_id} ({interpret_rule_id(rule_id)})\n"
            f"Time: {current_time}\n\n"
            "Create a promotional script in JSON format."
        )

    async def generate_promotional_script(
        self,
        display_name: str,
        business_type: str,
        rule_id: str,
        current_time: str,
    ) -> ScriptResult:
        client = self._get_client()
        prompt = self.build_prompt(display_name, business_type, rule_id, current_time)
        logger.info("Generating script for %s", display_name)

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    client.models.generate_content,
                    model=self.model_name,
                    contents=[prompt],
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            raise ScriptGenerationError(
                f"Gemini did not respond within {self._timeout}s"
            )
        except Exception as exc:
            raise ScriptGenerationError(f"Gemini request failed: {exc}") from exc

        text = getattr(response, "text", None)
        if not text:
            raise ScriptGenerationError("No response from Gemini")

        result = parse_script_response(text, display_name, business_type)
        logger.info(
            "Generated script for %s (%s) - rule %s, voice %s",
            display_name,
            business_type,
            rule_id,
            result.voice_style.value,
        )
        return result
