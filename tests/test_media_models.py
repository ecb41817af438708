import pytest
from pydantic import ValidationError

from media_agent.errors import MediaAgentError
from media_agent.models.media_models import (
    Artifact,
    EditRecord,
    MediaKind,
    OutputExtension,
    UnknownMediaTypeError,
    lookup_media_kind,
    normalize_extension,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("clip.mp4", MediaKind.VIDEO),
        ("SONG.MP3", MediaKind.AUDIO),
        ("photo.jpeg", MediaKind.IMAGE),
        (".wav", MediaKind.AUDIO),
        ("png", MediaKind.IMAGE),
        ("archive.tar.mkv", MediaKind.VIDEO),
    ],
)
def test_lookup_media_kind_known(value, expected):
    assert lookup_media_kind(value) is expected


@pytest.mark.parametrize("value", ["notes.txt", "", "noext", "script.exe", "none"])
def test_lookup_media_kind_unknown_returns_none(value):
    assert lookup_media_kind(value) is None


def test_normalize_extension():
    assert normalize_extension(".MP4") == "mp4"
    assert normalize_extension("dir/clip.Mov") == "mov"
    assert normalize_extension("flac") == "flac"


def test_every_file_extension_has_a_media_kind():
    for ext in OutputExtension:
        if ext is OutputExtension.NONE:
            assert not ext.writes_file
            continue
        assert lookup_media_kind(ext.value) is not None


def test_artifact_from_path_rejects_unknown_extension():
    with pytest.raises(UnknownMediaTypeError) as exc_info:
        Artifact.from_path("report.pdf", "/tmp/report.pdf")

    assert "report.pdf" in str(exc_info.value)
    assert isinstance(exc_info.value, MediaAgentError)
    assert isinstance(exc_info.value, ValueError)
    assert not exc_info.value.retryable


def test_artifact_is_immutable():
    artifact = Artifact.from_path("clip.mp4", "/tmp/clip.mp4")

    with pytest.raises(ValidationError):
        artifact.location = "/tmp/other.mp4"


def test_origin_record_has_no_prompt():
    artifact = Artifact.from_path("clip.mp4", "/tmp/clip.mp4")

    assert EditRecord(artifact=artifact).is_origin
    assert not EditRecord(artifact=artifact, prompt="trim").is_origin
