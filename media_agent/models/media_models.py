"""Media types shared by the edit history, the upload store and the agent."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path, PurePath

from pydantic import BaseModel, ConfigDict, Field

from media_agent.errors import MediaAgentError


class MediaKind(str, Enum):
    AUDIO = "audio"
    VIDEO = "video"
    IMAGE = "image"


class OutputExtension(str, Enum):
    """File extensions a generated command may write, plus a no-output sentinel."""

    # audio
    MP3 = "mp3"
    WAV = "wav"
    OGG = "ogg"
    FLAC = "flac"
    AAC = "aac"
    M4A = "m4a"
    OPUS = "opus"
    # video
    MP4 = "mp4"
    MOV = "mov"
    MKV = "mkv"
    WEBM = "webm"
    AVI = "avi"
    # image
    JPG = "jpg"
    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    WEBP = "webp"
    BMP = "bmp"

    NONE = "none"

    @property
    def writes_file(self) -> bool:
        return self is not OutputExtension.NONE


EXTENSION_KINDS: dict[str, MediaKind] = {
    "mp3": MediaKind.AUDIO,
    "wav": MediaKind.AUDIO,
    "ogg": MediaKind.AUDIO,
    "flac": MediaKind.AUDIO,
    "aac": MediaKind.AUDIO,
    "m4a": MediaKind.AUDIO,
    "opus": MediaKind.AUDIO,
    "mp4": MediaKind.VIDEO,
    "mov": MediaKind.VIDEO,
    "mkv": MediaKind.VIDEO,
    "webm": MediaKind.VIDEO,
    "avi": MediaKind.VIDEO,
    "jpg": MediaKind.IMAGE,
    "jpeg": MediaKind.IMAGE,
    "png": MediaKind.IMAGE,
    "gif": MediaKind.IMAGE,
    "webp": MediaKind.IMAGE,
    "bmp": MediaKind.IMAGE,
}


class UnknownMediaTypeError(MediaAgentError, ValueError):
    """Raised when a file's extension is not in the media allow-list."""

    kind = "unknown_media_type"

    def __init__(self, filename: str):
        self.filename = filename
        allowed = ", ".join(sorted(EXTENSION_KINDS))
        super().__init__(
            f"Unsupported file type for '{filename}'. Allowed extensions: {allowed}"
        )


def normalize_extension(value: str) -> str:
    """Return the bare lowercase extension of a filename or extension string."""
    text = value.strip().lower()
    suffix = PurePath(text).suffix
    if suffix:
        return suffix[1:]
    return text.lstrip(".")


def lookup_media_kind(value: str) -> MediaKind | None:
    """Map a filename or extension to its media kind.

    Never raises: ``None`` means the extension is not supported.
    """
    if not value:
        return None
    return EXTENSION_KINDS.get(normalize_extension(value))


class Artifact(BaseModel):
    """An immutable reference to a piece of media on disk."""

    model_config = ConfigDict(frozen=True)

    filename: str
    location: Path
    media_kind: MediaKind

    @classmethod
    def from_path(cls, filename: str, location: str | Path) -> "Artifact":
        media_kind = lookup_media_kind(filename)
        if media_kind is None:
            raise UnknownMediaTypeError(filename)
        return cls(filename=filename, location=Path(location), media_kind=media_kind)


class EditRecord(BaseModel):
    """An artifact together with the prompt and command that produced it."""

    model_config = ConfigDict(frozen=True)

    artifact: Artifact
    prompt: str | None = Field(
        default=None,
        description="Prompt that produced this artifact (None for the origin)",
    )
    command: str | None = Field(
        default=None,
        description="Command line that produced this artifact (None for the origin)",
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_origin(self) -> bool:
        return self.prompt is None
