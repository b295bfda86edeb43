import logging
from datetime import datetime, timezone
from typing import Optional

from adcast.core.config import settings
from adcast.core.exceptions import (
    ScriptGenerationError,
    ScriptGeneratorNotConfiguredError,
)
from adcast.schemas.environment import localized_timestamp
from adcast.schemas.pipeline import ErrorKind, ScriptResult, StepOutcome
from adcast.services.gemini_script_service import GeminiScriptService, fallback_script

logger = logging.getLogger(__name__)


class ScriptWriter:
    """Soft-failure boundary around the script generator.

    ``generate_script`` never raises: any generator error is logged and
    turned into ``None`` (or into a template script when
    ``fallback_on_error`` is enabled).
    """

    def __init__(
        self,
        generator: GeminiScriptService,
        fallback_on_error: Optional[bool] = None,
    ) -> None:
        self._generator = generator
        self._fallback_on_error = (
            fallback_on_error
            if fallback_on_error is not None
            else settings.SCRIPT_FALLBACK_ON_ERROR
        )

    async def generate_script(
        self,
        display_name: str,
        business_type: str,
        rule_id: str,
        current_time: Optional[datetime] = None,
    ) -> Optional[ScriptResult]:
        outcome = await self.try_generate(
            display_name, business_type, rule_id, current_time
        )
        return outcome.value if outcome.ok else None

    async def try_generate(
        self,
        display_name: str,
        business_type: str,
        rule_id: str,
        current_time: Optional[datetime] = None,
    ) -> StepOutcome[ScriptResult]:
        """Generate a script, classifying any failure instead of raising."""
        moment = current_time or datetime.now(timezone.utc)
        try:
            result = await self._generator.generate_promotional_script(
                display_name=display_name,
                business_type=business_type,
                rule_id=rule_id,
                current_time=localized_timestamp(moment),
            )
            return StepOutcome.success(result)
        except ScriptGenerationError as exc:
            logger.warning("Script generation failed for %s: %s", display_name, exc.detail)
            if self._fallback_on_error:
                return StepOutcome.success(
                    fallback_script(display_name, business_type, rule_id)
                )
            kind = (
                ErrorKind.configuration
                if isinstance(exc, ScriptGeneratorNotConfiguredError)
                else ErrorKind.provider
            )
            return StepOutcome.failure(kind, exc.detail)
        except Exception as exc:
            logger.warning(
                "Unexpected error generating script for %s",
                display_name,
                exc_info=True,
            )
            return StepOutcome.failure(ErrorKind.unexpected, str(exc))
