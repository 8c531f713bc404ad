"""Error codes and exception types shared by the pipeline and the relay."""
from enum import Enum
from typing import Optional

ERR_TIMEOUT = "TIMEOUT"
ERR_ACQUISITION = "ACQUISITION_FAILED"
ERR_NOT_IMAGE = "NOT_AN_IMAGE"
ERR_VALIDATION = "VALIDATION_FAILED"
ERR_NOT_READY = "IMAGE_NOT_READY"
ERR_EXTRACTION = "EXTRACTION_FAILED"
ERR_NO_TEXT = "NO_TEXT_FOUND"
ERR_SYNTHESIS = "SYNTHESIS_FAILED"
ERR_PLAYBACK_BLOCKED = "PLAYBACK_BLOCKED"
ERR_UNKNOWN = "UNKNOWN"


class ErrorKind(str, Enum):
    ACQUISITION_FAILED = ERR_ACQUISITION
    VALIDATION_FAILED = ERR_VALIDATION
    EXTRACTION_FAILED = ERR_EXTRACTION
    SYNTHESIS_FAILED = ERR_SYNTHESIS
    PLAYBACK_BLOCKED = ERR_PLAYBACK_BLOCKED
    TIMEOUT = ERR_TIMEOUT
    UNKNOWN = ERR_UNKNOWN


class PipelineError(Exception):
    """Base error. `code` refines `kind` (e.g. NO_TEXT_FOUND is an extraction failure)."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str = "", status: Optional[int] = None, code: Optional[str] = None,
                 details: Optional[dict] = None):
        super().__init__(message or self.kind.value)
        self.status = status
        self.code = code or self.kind.value
        self.details = details or {}


class AcquisitionError(PipelineError):
    kind = ErrorKind.ACQUISITION_FAILED


class ValidationError(PipelineError):
    kind = ErrorKind.VALIDATION_FAILED


class ExtractionFailed(PipelineError):
    kind = ErrorKind.EXTRACTION_FAILED


class SynthesisFailed(PipelineError):
    kind = ErrorKind.SYNTHESIS_FAILED


class PlaybackBlocked(PipelineError):
    """Autoplay refused by policy. Not a failure: the UI falls back to a play button."""
    kind = ErrorKind.PLAYBACK_BLOCKED


class PipelineTimeout(PipelineError):
    kind = ErrorKind.TIMEOUT


_READ_FAILED = "Sorry, I couldn't read the text from your book. Please try taking another photo!"

USER_MESSAGES: dict[str, str] = {
    ERR_NOT_IMAGE: "Please select an image file.",
    ERR_ACQUISITION: "Error reading the image file. Please try again.",
    ERR_VALIDATION: "Invalid image data. Please try taking the photo again.",
    ERR_NOT_READY: "Image failed to load after multiple attempts. Please try taking another photo.",
    ERR_TIMEOUT: "File processing timed out. Please try taking another photo.",
    ERR_EXTRACTION: _READ_FAILED,
    ERR_NO_TEXT: _READ_FAILED,
    ERR_SYNTHESIS: "I can show you the text, but audio isn't working right now. Please try again later!",
    ERR_UNKNOWN: "Something went wrong. Please try again.",
}


def user_message(err: PipelineError) -> str:
    return USER_MESSAGES.get(err.code) or USER_MESSAGES.get(err.kind.value) or USER_MESSAGES[ERR_UNKNOWN]
