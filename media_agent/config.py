"""Session configuration.

Values come from the environment (``.env`` is loaded by ``media_agent.main``)
and are passed explicitly into the agent instead of living in module globals.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_MODEL = "google/gemini-3-flash-preview"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class SessionConfig(BaseModel):
    model: str = DEFAULT_MODEL
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    max_retries: int = Field(default=2, ge=0, description="Repair attempts after the first")
    command_timeout: float = Field(default=120.0, gt=0, description="Seconds per command")
    explain: bool = True
    explanation_retries: int = Field(default=1, ge=0)
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    temp_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "media_agent"
    )
    max_output_chars: int = Field(
        default=4000,
        gt=0,
        description="Captured output kept per stream when grounding a repair",
    )

    @classmethod
    def from_env(cls) -> "SessionConfig":
        values: dict = {
            "model": os.getenv("MEDIA_AGENT_MODEL", DEFAULT_MODEL),
            "api_key": os.getenv("OPENROUTER_API_KEY", ""),
            "base_url": os.getenv("MEDIA_AGENT_BASE_URL", DEFAULT_BASE_URL),
            "max_retries": int(os.getenv("MEDIA_AGENT_MAX_RETRIES", "2")),
            "command_timeout": float(os.getenv("MEDIA_AGENT_COMMAND_TIMEOUT", "120")),
            "explain": _env_bool("MEDIA_AGENT_EXPLAIN", True),
            "explanation_retries": int(os.getenv("MEDIA_AGENT_EXPLAIN_RETRIES", "1")),
            "ffmpeg_bin": os.getenv("FFMPEG_BIN", "ffmpeg"),
            "ffprobe_bin": os.getenv("FFPROBE_BIN", "ffprobe"),
            "max_output_chars": int(os.getenv("MEDIA_AGENT_MAX_OUTPUT_CHARS", "4000")),
        }
        temp_dir = os.getenv("MEDIA_AGENT_TEMP_DIR", "").strip()
        if temp_dir:
            values["temp_dir"] = Path(temp_dir)
        return cls(**values)
