from __future__ import annotations

from pathlib import Path

import pytest

from media_agent.config import SessionConfig
from media_agent.models.media_models import Artifact
from media_agent.utils.upload_store import UploadStore


@pytest.fixture
def config(tmp_path: Path) -> SessionConfig:
    return SessionConfig(
        max_retries=2,
        command_timeout=30,
        explain=False,
        temp_dir=tmp_path / "outputs",
    )


@pytest.fixture
def store(config: SessionConfig) -> UploadStore:
    return UploadStore(config.temp_dir)


@pytest.fixture
def video_file(tmp_path: Path) -> Path:
    path = tmp_path / "uploads" / "clip.mp4"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"fake-mp4")
    return path


@pytest.fixture
def video_artifact(video_file: Path) -> Artifact:
    return Artifact.from_path("clip.mp4", video_file)
