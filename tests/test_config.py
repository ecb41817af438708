from pathlib import Path

import pytest
from pydantic import ValidationError

from media_agent.config import DEFAULT_MODEL, SessionConfig


def test_defaults(monkeypatch):
    for name in (
        "MEDIA_AGENT_MODEL",
        "MEDIA_AGENT_MAX_RETRIES",
        "MEDIA_AGENT_COMMAND_TIMEOUT",
        "MEDIA_AGENT_EXPLAIN",
        "MEDIA_AGENT_TEMP_DIR",
        "FFMPEG_BIN",
        "MEDIA_AGENT_MAX_OUTPUT_CHARS",
    ):
        monkeypatch.delenv(name, raising=False)

    config = SessionConfig.from_env()

    assert config.model == DEFAULT_MODEL
    assert config.max_retries == 2
    assert config.command_timeout == 120
    assert config.explain is True
    assert config.ffmpeg_bin == "ffmpeg"
    assert config.max_output_chars == 4000


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("MEDIA_AGENT_MODEL", "openai/gpt-4o-mini")
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    monkeypatch.setenv("MEDIA_AGENT_MAX_RETRIES", "4")
    monkeypatch.setenv("MEDIA_AGENT_COMMAND_TIMEOUT", "15.5")
    monkeypatch.setenv("MEDIA_AGENT_EXPLAIN", "off")
    monkeypatch.setenv("FFPROBE_BIN", "/usr/local/bin/ffprobe")
    monkeypatch.setenv("MEDIA_AGENT_TEMP_DIR", str(tmp_path))

    config = SessionConfig.from_env()

    assert config.model == "openai/gpt-4o-mini"
    assert config.api_key == "sk-test"
    assert config.max_retries == 4
    assert config.command_timeout == 15.5
    assert config.explain is False
    assert config.ffprobe_bin == "/usr/local/bin/ffprobe"
    assert config.temp_dir == Path(tmp_path)


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_retries": -1},
        {"command_timeout": 0},
        {"explanation_retries": -1},
        {"max_output_chars": 0},
    ],
)
def test_rejects_invalid_values(overrides):
    with pytest.raises(ValidationError):
        SessionConfig(**overrides)
