import logging

from media_agent.agent.command_agent.explanation import explain_result
from media_agent.agent.command_agent.types import EditResult, Explanation
from media_agent.errors import ProviderError, SchemaError

from fakes import FakeProvider, descriptor


def _result() -> EditResult:
    return EditResult(
        descriptor=descriptor(),
        argv=["ffmpeg", "-i", "in.mp4", "-vn", "out.mp3"],
        command_line="ffmpeg -i in.mp4 -vn out.mp3",
        exit_status=0,
        stderr="size=     512kB time=00:00:32.00",
    )


def test_explanation_returned(config):
    config = config.model_copy(update={"explain": True, "explanation_retries": 2})
    expected = Explanation(explanation="Removed the video stream.", confidence=8.5)
    provider = FakeProvider(explanations=[expected])

    explanation = explain_result(provider, "extract audio", _result(), config)

    assert explanation == expected
    call = provider.calls[0]
    assert call["response_model"] is Explanation
    assert call["max_retries"] == 2
    user_content = call["messages"][-1]["content"]
    assert "extract audio" in user_content
    assert "ffmpeg -i in.mp4 -vn out.mp3" in user_content
    assert "time=00:00:32.00" in user_content


def test_explanation_skipped_when_disabled(config):
    provider = FakeProvider()

    assert explain_result(provider, "x", _result(), config) is None
    assert provider.calls == []


def test_schema_failure_is_swallowed(config, caplog):
    config = config.model_copy(update={"explain": True})
    provider = FakeProvider(explanations=[SchemaError("confidence: not a multiple of 0.5")])

    with caplog.at_level(logging.WARNING):
        explanation = explain_result(provider, "x", _result(), config)

    assert explanation is None
    assert "Explanation failed (schema)" in caplog.text


def test_provider_and_unexpected_failures_are_swallowed(config):
    config = config.model_copy(update={"explain": True})
    provider = FakeProvider(explanations=[ProviderError("down"), RuntimeError("boom")])

    assert explain_result(provider, "x", _result(), config) is None
    assert explain_result(provider, "x", _result(), config) is None
