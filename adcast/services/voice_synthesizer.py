import asyncio
import logging
import os
import re
import time
from typing import Any, Callable, Dict, Optional

from elevenlabs import VoiceSettings as ElevenLabsVoiceSettings
from elevenlabs.client import ElevenLabs

from adcast.core.config import settings
from adcast.core.constants import AUDIO_BITRATE_BPS
from adcast.core.exceptions import (
    AdcastError,
    EmptyAudioError,
    VoiceSynthesisConfigError,
)
from adcast.schemas.pipeline import (
    ErrorKind,
    StepOutcome,
    SynthesisResult,
    VoiceSettings,
)

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9]")


def sanitize_name(name: str) -> str:
    """Replace every non-alphanumeric character with ``_``."""
    return _UNSAFE_NAME_CHARS.sub("_", name)


def estimate_duration_seconds(file_size: int) -> float:
    """Approximate playback length from the configured mp3 bitrate."""
    return round(file_size * 8 / AUDIO_BITRATE_BPS, 2)


class VoiceSynthesizer:
    """Turn a script into an mp3 on disk via ElevenLabs text-to-speech.

    Files are named ``script_<epochMillis>_<voiceType>_<advertiser>.mp3``
    under ``AUDIO_OUTPUT_DIR`` and returned as a web path under
    ``AUDIO_URL_PREFIX`` for the static file mount.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        output_dir: Optional[str] = None,
        url_prefix: Optional[str] = None,
        voice_ids: Optional[Dict[str, str]] = None,
        client_factory: Optional[Callable[[str], Any]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.ELEVENLABS_API_KEY
        self._output_dir = output_dir or settings.AUDIO_OUTPUT_DIR
        self._url_prefix = (url_prefix or settings.AUDIO_URL_PREFIX).rstrip("/")
        self._voice_ids = voice_ids or {
            "male": settings.ELEVENLABS_MALE_VOICE_ID,
            "female": settings.ELEVENLABS_FEMALE_VOICE_ID,
        }
        self._client_factory = client_factory or (lambda key: ElevenLabs(api_key=key))
        self._client: Any = None
        self._clock = clock

    def _get_client(self) -> Any:
        if not self._api_key:
            raise VoiceSynthesisConfigError()
        if self._client is None:
            self._client = self._client_factory(self._api_key)
        return self._client

    def build_file_name(self, voice_type: str, advertiser_name: str) -> str:
        millis = int(self._clock() * 1000)
        return f"script_{millis}_{voice_type}_{sanitize_name(advertiser_name)}.mp3"

    def _convert(
        self, client: Any, script: str, voice_id: str, voice_settings: VoiceSettings
    ) -> bytes:
        """Blocking provider call; drains the chunk stream into one buffer."""
        stream = client.text_to_speech.convert(
            voice_id=voice_id,
            text=script,
            model_id=settings.ELEVENLABS_MODEL_ID,
            output_format=settings.ELEVENLABS_OUTPUT_FORMAT,
            voice_settings=ElevenLabsVoiceSettings(**voice_settings.model_dump()),
        )
        return b"".join(chunk for chunk in stream if chunk)

    @staticmethod
    def _write_file(path: str, data: bytes) -> int:
        with open(path, "wb") as fh:
            fh.write(data)
        return os.path.getsize(path)

    async def synthesize(
        self,
        script: str,
        voice_type: str,
        voice_settings: VoiceSettings,
        advertiser_name: str,
    ) -> SynthesisResult:
        """Synthesize *script* and return where the mp3 can be fetched.

        Raises ``VoiceSynthesisConfigError`` without an API key and
        ``EmptyAudioError`` when the provider streams no bytes.  A
        partially written file is removed before the error propagates.
        """
        voice_type = getattr(voice_type, "value", voice_type)
        client = self._get_client()
        voice_id = self._voice_ids.get(voice_type, self._voice_ids["male"])

        file_name = self.build_file_name(voice_type, advertiser_name)
        file_path = os.path.join(self._output_dir, file_name)

        logger.info("Generating %s voiceover for %s", voice_type, advertiser_name)
        try:
            audio = await asyncio.to_thread(
                self._convert, client, script, voice_id, voice_settings
            )
            if not audio:
                raise EmptyAudioError()

            os.makedirs(self._output_dir, exist_ok=True)
            file_size = await asyncio.to_thread(self._write_file, file_path, audio)
        except Exception:
            self._cleanup(file_path)
            raise

        logger.info("Voiceover saved: %s (%d bytes)", file_name, file_size)
        return SynthesisResult(
            audio_path=f"{self._url_prefix}/{file_name}",
            file_name=file_name,
            file_size=file_size,
        )

    async def try_synthesize(
        self,
        script: str,
        voice_type: str,
        voice_settings: VoiceSettings,
        advertiser_name: str,
    ) -> StepOutcome[SynthesisResult]:
        """Like :meth:`synthesize`, but classifies failures instead of raising."""
        try:
            result = await self.synthesize(
                script, voice_type, voice_settings, advertiser_name
            )
            return StepOutcome.success(result)
        except VoiceSynthesisConfigError as exc:
            return StepOutcome.failure(ErrorKind.configuration, exc.detail)
        except EmptyAudioError as exc:
            return StepOutcome.failure(ErrorKind.empty_output, exc.detail)
        except AdcastError as exc:
            return StepOutcome.failure(ErrorKind.unexpected, exc.detail)
        except Exception as exc:
            logger.warning(
                "Voice synthesis failed for %s", advertiser_name, exc_info=True
            )
            return StepOutcome.failure(ErrorKind.provider, str(exc))

    @staticmethod
    def _cleanup(file_path: str) -> None:
        try:
            if os.path.exists(file_path):
                os.unlink(file_path)
        except OSError:
            logger.warning("Failed to remove partial audio file %s", file_path)
