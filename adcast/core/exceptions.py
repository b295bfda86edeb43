class AdcastError(Exception):
    """Base class for all AdCast domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except AdcastError`` clause can catch any domain error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class AdvertisingRecordNotFoundError(AdcastError):
    """Raised when a requested advertising record does not exist."""

    def __init__(self, detail: str = "Advertising record not found"):
        super().__init__(detail)


class AudioNotFoundError(AdcastError):
    """Raised when a requested audio record does not exist."""

    def __init__(self, detail: str = "Audio record not found"):
        super().__init__(detail)


class InvalidStatusTransitionError(AdcastError):
    """Raised when an invalid advertising status transition is attempted."""

    def __init__(self, detail: str = "Invalid status transition"):
        super().__init__(detail)


class VoiceSynthesisConfigError(AdcastError):
    """Raised when the text-to-speech provider is not configured.

    This is fatal for the synthesis call that hit it; the pipeline
    records it as a per-record failure and carries on.
    """

    def __init__(self, detail: str = "ELEVENLABS_API_KEY is not configured"):
        super().__init__(detail)


class EmptyAudioError(AdcastError):
    """Raised when the text-to-speech provider returns no audio bytes."""

    def __init__(self, detail: str = "Text-to-speech provider returned no audio"):
        super().__init__(detail)


class ScriptGenerationError(AdcastError):
    """Raised when the script generator cannot produce a script."""

    def __init__(self, detail: str = "Script generation failed"):
        super().__init__(detail)


class PipelineBusyError(AdcastError):
    """Raised when another pipeline run holds the run-lock for too long."""

    def __init__(self, detail: str = "Another pipeline run is in progress"):
        super().__init__(detail)


class GovernmentDataUnavailableError(AdcastError):
    """Raised when the government data feed cannot be reached."""

    def __init__(self, detail: str = "Government data service unavailable"):
        super().__init__(detail)


class ScriptGeneratorNotConfiguredError(ScriptGenerationError):
    """Raised when no script generator credential is configured."""

    def __init__(self, detail: str = "GEMINI_API_KEY is not configured"):
        super().__init__(detail)
