import base64
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from story_reader.orchestrator.errors import ValidationError


class Stage(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    CAPTURED = "captured"
    EXTRACTING = "extracting"
    SYNTHESIZING = "synthesizing"
    PLAYING = "playing"
    TEXT_ONLY = "text_only"   # synthesis failed: text shown, no audio
    ERROR = "error"


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    mime_type: str = "image/jpeg"
    width: int = 0
    height: int = 0
    # decoded BGR pixels, when already known
    frame: Any = field(default=None, compare=False, repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    def b64(self) -> str:
        """Base64 payload without the data-URL prefix (what /api/extract-text expects)."""
        return base64.standard_b64encode(self.data).decode("utf-8")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.b64()}"

    @classmethod
    def from_data_url(cls, url: str, width: int = 0, height: int = 0) -> "EncodedImage":
        header, sep, payload = url.partition(",")
        if not sep or not header.startswith("data:"):
            raise ValidationError("invalid image data: not a data URL")
        mime = header[len("data:"):].split(";")[0]
        if not mime.startswith("image/"):
            raise ValidationError(f"invalid image data: MIME type {mime!r}")
        try:
            data = base64.b64decode(payload, validate=True)
        except ValueError as e:
            raise ValidationError(f"invalid image data: {e}") from e
        return cls(data=data, mime_type=mime, width=width, height=height)


class AudioResource:
    """
    Playable handle over synthesized speech.

    The handle is a temp file created on first access of `path`; `release()`
    deletes it. Only one may be live per session.
    """

    def __init__(self, data: bytes, mime_type: str = "audio/mpeg"):
        self.data = data
        self.mime_type = mime_type
        self.released = False
        self._path: Optional[str] = None

    @property
    def path(self) -> str:
        if self.released:
            raise RuntimeError("audio resource already released")
        if self._path is None:
            fd, self._path = tempfile.mkstemp(prefix="story_reader_", suffix=_AUDIO_SUFFIX.get(self.mime_type, ".audio"))
            with os.fdopen(fd, "wb") as f:
                f.write(self.data)
        return self._path

    def release(self):
        if self.released:
            return
        self.released = True
        if self._path and os.path.exists(self._path):
            os.remove(self._path)
        self._path = None

    def __repr__(self):
        state = "released" if self.released else "live"
        return f"<AudioResource {self.mime_type} {len(self.data)}B {state}>"


_AUDIO_SUFFIX = {
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/ogg": ".ogg",
}


@dataclass
class RunResult:
    ok: bool
    stage: Stage
    duration_ms: int
    error_code: Optional[str] = None
    text: Optional[str] = None
    has_audio: bool = False


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class SessionConfig:
    base_url: str = "http://127.0.0.1:3000"
    # True: captured image goes straight to extraction. False: wait for read().
    auto_advance: bool = True
    autoplay: bool = True
    debounce_s: float = 1.0
    file_timeout_s: float = 10.0
    http_timeout_s: float = 60.0
    # readiness fallback polling: 30 x 100ms
    ready_attempts: int = 30
    ready_interval_s: float = 0.1

    @classmethod
    def from_env(cls) -> "SessionConfig":
        return cls(
            base_url=os.getenv("READER_BASE_URL", cls.base_url),
            auto_advance=_env_bool("READER_AUTO_ADVANCE", cls.auto_advance),
            autoplay=_env_bool("READER_AUTOPLAY", cls.autoplay),
            debounce_s=float(os.getenv("READER_DEBOUNCE_S", cls.debounce_s)),
            file_timeout_s=float(os.getenv("READER_FILE_TIMEOUT_S", cls.file_timeout_s)),
            http_timeout_s=float(os.getenv("READER_HTTP_TIMEOUT_S", cls.http_timeout_s)),
        )
