"""
Tests for the edit session: history updates around the repair loop.
"""

import threading
from pathlib import Path

import pytest

from media_agent.agent.command_agent.types import CommandDescriptor, Explanation, Program
from media_agent.agent.edit_session import EditSession
from media_agent.errors import (
    ExhaustedFailure,
    SessionBusyError,
    SessionNotStartedError,
)
from media_agent.models.media_models import MediaKind, OutputExtension, UnknownMediaTypeError

from fakes import FakeProvider, FakeRunner, descriptor, exits, writes_output


def _session(config, store, provider, runner):
    return EditSession(config=config, provider=provider, store=store, runner=runner)


def test_start_pushes_origin(config, store, video_file):
    session = _session(config, store, FakeProvider(), FakeRunner([]))

    origin = session.start("clip.mp4", str(video_file))

    assert origin.is_origin
    assert session.current() == origin
    assert origin.artifact.media_kind is MediaKind.VIDEO
    assert len(session.history) == 1


def test_start_rejects_unsupported_type(config, store, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hi")
    session = _session(config, store, FakeProvider(), FakeRunner([]))

    with pytest.raises(UnknownMediaTypeError):
        session.start("notes.txt", str(path))
    assert not session.started


def test_start_rejects_missing_file(config, store, tmp_path):
    session = _session(config, store, FakeProvider(), FakeRunner([]))

    with pytest.raises(FileNotFoundError):
        session.start("clip.mp4", str(tmp_path / "missing.mp4"))


def test_operations_require_a_started_session(config, store):
    session = _session(config, store, FakeProvider(), FakeRunner([]))

    with pytest.raises(SessionNotStartedError):
        session.submit("trim")
    with pytest.raises(SessionNotStartedError):
        session.undo()
    with pytest.raises(SessionNotStartedError):
        session.reset()


def test_submit_pushes_new_artifact(config, store, video_file):
    session = _session(
        config,
        store,
        FakeProvider(descriptors=[descriptor()]),
        FakeRunner([writes_output()]),
    )
    session.start("clip.mp4", str(video_file))

    outcome = session.submit("  extract audio as mp3 ")

    record = outcome.record
    assert record is not None
    assert session.current() == record
    assert record.prompt == "extract audio as mp3"
    assert record.command == outcome.result.command_line
    assert record.artifact.filename == "clip_edit1.mp3"
    assert record.artifact.media_kind is MediaKind.AUDIO
    assert record.artifact.location == outcome.result.output_path
    assert outcome.explanation is None


def test_next_edit_runs_on_current_artifact(config, store, video_file):
    runner = FakeRunner([writes_output(), writes_output()])
    session = _session(
        config,
        store,
        FakeProvider(descriptors=[descriptor(), descriptor(arguments=["-af", "volume=2"])]),
        runner,
    )
    session.start("clip.mp4", str(video_file))
    first = session.submit("extract audio as mp3").record

    session.submit("make it louder")

    second_argv = runner.calls[1][0]
    assert second_argv[2] == str(first.artifact.location)
    assert session.history.previous() == first


def test_probe_leaves_history_unchanged(config, store, video_file):
    probe = CommandDescriptor(
        program=Program.FFPROBE,
        arguments=["-show_format"],
        output_extension=OutputExtension.NONE,
    )
    session = _session(config, store, FakeProvider(descriptors=[probe]), FakeRunner([exits(0, stdout="duration=3.0")]))
    origin = session.start("clip.mp4", str(video_file))

    outcome = session.submit("how long is it?")

    assert outcome.record is None
    assert outcome.result.stdout == "duration=3.0"
    assert session.current() == origin


def test_exhausted_failure_leaves_history_unchanged(config, store, video_file):
    config = config.model_copy(update={"max_retries": 0})
    session = _session(
        config,
        store,
        FakeProvider(descriptors=[descriptor()]),
        FakeRunner([exits(1, stderr="boom")]),
    )
    origin = session.start("clip.mp4", str(video_file))

    with pytest.raises(ExhaustedFailure):
        session.submit("x")

    assert session.history.records() == [origin]
    assert not session.busy


def test_explanation_attached_when_enabled(config, store, video_file):
    config = config.model_copy(update={"explain": True})
    explanation = Explanation(explanation="Extracted audio.", confidence=9)
    session = _session(
        config,
        store,
        FakeProvider(descriptors=[descriptor()], explanations=[explanation]),
        FakeRunner([writes_output()]),
    )
    session.start("clip.mp4", str(video_file))

    assert session.submit("extract audio").explanation == explanation


def test_undo_and_reset(config, store, video_file):
    session = _session(
        config,
        store,
        FakeProvider(descriptors=[descriptor() for _ in range(3)]),
        FakeRunner([writes_output() for _ in range(3)]),
    )
    origin = session.start("clip.mp4", str(video_file))
    a = session.submit("a").record
    session.submit("b")

    assert session.undo() == a
    assert session.current() == a

    session.submit("c")
    assert len(session.history) == 3

    assert session.reset() == origin
    assert session.history.records() == [origin]
    assert session.undo() is None
    assert len(session.history) == 1


def test_concurrent_submit_is_rejected(config, store, video_file):
    started = threading.Event()
    release = threading.Event()

    def slow_output(argv):
        started.set()
        release.wait(timeout=10)
        return writes_output()(argv)

    session = _session(
        config,
        store,
        FakeProvider(descriptors=[descriptor()]),
        FakeRunner([slow_output]),
    )
    session.start("clip.mp4", str(video_file))

    worker = threading.Thread(target=session.submit, args=("extract audio",))
    worker.start()
    try:
        assert started.wait(timeout=10)
        assert session.busy
        with pytest.raises(SessionBusyError):
            session.submit("another")
        with pytest.raises(SessionBusyError):
            session.undo()
        with pytest.raises(SessionBusyError):
            session.reset()
    finally:
        release.set()
        worker.join(timeout=10)

    assert not session.busy
    assert len(session.history) == 2


def test_close_removes_generated_outputs_only(config, store, video_file):
    session = _session(
        config,
        store,
        FakeProvider(descriptors=[descriptor()]),
        FakeRunner([writes_output()]),
    )
    session.start("clip.mp4", str(video_file))
    output = Path(session.submit("x").record.artifact.location)

    session.close()

    assert not output.exists()
    assert video_file.exists()


def test_edit_names_are_not_reused_after_undo(config, store, video_file):
    session = _session(
        config,
        store,
        FakeProvider(descriptors=[descriptor() for _ in range(3)]),
        FakeRunner([writes_output() for _ in range(3)]),
    )
    session.start("clip.mp4", str(video_file))
    session.submit("a")
    second = session.submit("b").record
    session.undo()

    third = session.submit("c").record

    assert second.artifact.filename == "clip_edit2.mp3"
    assert third.artifact.filename == "clip_edit3.mp3"


def test_start_is_rejected_while_an_operation_holds_the_session(config, store, video_file, tmp_path):
    other = tmp_path / "other.wav"
    other.write_bytes(b"fake-wav")
    session = _session(config, store, FakeProvider(), FakeRunner([]))
    origin = session.start("clip.mp4", str(video_file))

    with session._lock:
        with pytest.raises(SessionBusyError):
            session.start("other.wav", str(other))
        with pytest.raises(SessionBusyError):
            session.undo()
        with pytest.raises(SessionBusyError):
            session.reset()

    assert session.history.records() == [origin]
    assert session.start("other.wav", str(other)).artifact.filename == "other.wav"
