"""Error types and user-facing error messages."""

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    ALREADY_PLAYING = "already_playing"
    ALREADY_TRANSMITTING = "already_transmitting"
    PERMISSION_DENIED = "permission_denied"
    DEVICE_UNSUPPORTED = "device_unsupported"
    AUDIO_PLAYBACK_FAILED = "audio_playback_failed"
    STORAGE_FULL = "storage_full"
    GENERATION_FAILED = "generation_failed"
    TRANSMISSION_FAILED = "transmission_failed"
    UNKNOWN = "unknown"


class MorseError(Exception):
    """Base error carrying a coarse kind and a readable message."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str, context: str | None = None):
        super().__init__(message)
        self.message = message
        self.context = context


class InvalidInput(MorseError):
    kind = ErrorKind.INVALID_INPUT


class AlreadyPlaying(MorseError):
    kind = ErrorKind.ALREADY_PLAYING


class AlreadyTransmitting(MorseError):
    kind = ErrorKind.ALREADY_TRANSMITTING


class PermissionDenied(MorseError):
    kind = ErrorKind.PERMISSION_DENIED


class DeviceUnsupported(MorseError):
    kind = ErrorKind.DEVICE_UNSUPPORTED


class AudioPlaybackFailed(MorseError):
    kind = ErrorKind.AUDIO_PLAYBACK_FAILED


class StorageFull(MorseError):
    kind = ErrorKind.STORAGE_FULL


class GenerationFailed(MorseError):
    kind = ErrorKind.GENERATION_FAILED


class TransmissionFailed(MorseError):
    kind = ErrorKind.TRANSMISSION_FAILED


class UnknownError(MorseError):
    kind = ErrorKind.UNKNOWN


_ERROR_CLASSES = {cls.kind: cls for cls in MorseError.__subclasses__()}

_STORAGE_MARKERS = ("storage", "space", "disk full")


def is_storage_error(exc: BaseException) -> bool:
    """Check whether a failure message points at exhausted storage."""
    message = str(exc).lower()
    return any(marker in message for marker in _STORAGE_MARKERS)


def as_morse_error(
    exc: BaseException,
    kind: ErrorKind = ErrorKind.UNKNOWN,
    context: str | None = None,
) -> MorseError:
    """Wrap an arbitrary exception in the MorseError subclass for *kind*."""
    if isinstance(exc, MorseError):
        return exc
    error = _ERROR_CLASSES[kind](str(exc) or type(exc).__name__, context)
    error.__cause__ = exc
    return error


_FRIENDLY_MESSAGES = {
    ErrorKind.ALREADY_PLAYING: "Playback is already in progress.",
    ErrorKind.ALREADY_TRANSMITTING: "A flashlight transmission is already in progress.",
    ErrorKind.PERMISSION_DENIED: (
        "Permission required: {context}. Please enable it in your device settings."
    ),
    ErrorKind.DEVICE_UNSUPPORTED: "{context} is not available on your device.",
    ErrorKind.AUDIO_PLAYBACK_FAILED: "Audio playback failed. Please try again.",
    ErrorKind.STORAGE_FULL: "Not enough storage space. Please free up some space and try again.",
    ErrorKind.GENERATION_FAILED: "Failed to generate audio file. Please try again.",
    ErrorKind.TRANSMISSION_FAILED: "Flashlight transmission failed. Please try again.",
}

_DEFAULT_CONTEXT = {
    ErrorKind.PERMISSION_DENIED: "Unknown permission",
    ErrorKind.DEVICE_UNSUPPORTED: "This feature",
}


def friendly_message(error: MorseError) -> str:
    """Return a message suitable for showing to the user.

    Invalid input keeps its own message since it already describes what
    the caller got wrong.
    """
    if error.kind is ErrorKind.INVALID_INPUT:
        return error.message

    template = _FRIENDLY_MESSAGES.get(
        error.kind, "An unexpected error occurred. Please try again."
    )
    context = error.context or _DEFAULT_CONTEXT.get(error.kind, "")
    return template.format(context=context)


def notification_level(error: MorseError) -> str:
    """Severity to display: unsupported features are only a warning."""
    return "warning" if error.kind is ErrorKind.DEVICE_UNSUPPORTED else "error"
