"""Generate, run and repair a media command.

Each attempt goes through four stages:
1. Generate a descriptor from the prompt and earlier failures
2. Assemble the command line
3. Execute it
4. Validate what it produced

A failure in any stage becomes an ``AttemptContext`` for the next attempt
until the retry budget runs out.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from media_agent.config import SessionConfig
from media_agent.errors import (
    ExecutionError,
    ExhaustedFailure,
    InvalidPromptError,
    MediaAgentError,
    OutputValidationError,
)
from media_agent.models.media_models import Artifact
from media_agent.utils.process_runner import ProcessResult, Runner, run_process
from media_agent.utils.upload_store import UploadStore

from .assembly import AssembledCommand, assemble_command
from .descriptor import generate_descriptor
from .provider import StructuredProvider
from .types import AttemptContext, CommandDescriptor, EditResult, Program

logger = logging.getLogger(__name__)

EventSink = Callable[[str, str], None]


def _emit(on_event: EventSink | None, level: str, message: str) -> None:
    if on_event is None:
        return
    try:
        on_event(level, message)
    except Exception:
        logger.exception("Event sink failed")


def failure_reason(result: ProcessResult) -> str:
    """Pick the most useful text describing a failed run."""
    if result.stderr.strip():
        return result.stderr.strip()
    if result.stdout.strip():
        return result.stdout.strip()
    if result.signal:
        return f"terminated by {result.signal}"
    return f"exited with status {result.exit_status}"


def is_failed_run(descriptor: CommandDescriptor, result: ProcessResult) -> bool:
    if result.ok:
        return False
    # ffprobe uses non-zero codes for some informational output
    if descriptor.program is Program.FFPROBE:
        return not result.stdout.strip()
    return True


def execute_command(
    descriptor: CommandDescriptor,
    command: AssembledCommand,
    runner: Runner,
    timeout: float,
) -> ProcessResult:
    """Run the assembled command, raising ``ExecutionError`` if it failed."""
    try:
        result = runner(command.argv, timeout)
    except ExecutionError as exc:
        if exc.command_line is None:
            exc.command_line = command.command_line
        raise

    if is_failed_run(descriptor, result):
        raise ExecutionError(
            failure_reason(result),
            command_line=command.command_line,
            stdout=result.stdout,
            stderr=result.stderr,
            exit_status=result.exit_status,
        )
    return result


def _captured(command: AssembledCommand, result: ProcessResult) -> dict:
    return {
        "command_line": command.command_line,
        "stdout": result.stdout,
        "stderr": result.stderr,
        "exit_status": result.exit_status,
    }


def validate_output(
    descriptor: CommandDescriptor,
    command: AssembledCommand,
    result: ProcessResult,
) -> None:
    """Check that the command produced what the descriptor promised.

    Raises:
        OutputValidationError: The expected output is missing or empty, or a
            command without file output did not exit cleanly.
    """
    if command.output_path is not None:
        path = Path(command.output_path)
        if not path.exists():
            raise OutputValidationError(
                f"Expected output file was not created: {path.name}",
                **_captured(command, result),
            )
        if path.stat().st_size == 0:
            raise OutputValidationError(
                f"Output file is empty: {path.name}",
                **_captured(command, result),
            )
        return

    if descriptor.program is Program.FFMPEG and not result.ok:
        raise OutputValidationError(
            f"Command without file output exited with status {result.exit_status}",
            **_captured(command, result),
        )


def _attempt_context(
    attempt: int,
    prompt: str,
    artifact: Artifact,
    error: MediaAgentError,
    command: AssembledCommand | None,
) -> AttemptContext:
    context = AttemptContext(
        attempt=attempt,
        prompt=prompt,
        media_kind=artifact.media_kind,
        error_kind=error.kind,
        error=str(error),
        command_line=command.command_line if command else None,
    )
    if isinstance(error, (ExecutionError, OutputValidationError)):
        context.command_line = error.command_line or context.command_line
        context.stdout = error.stdout
        context.stderr = error.stderr
        context.exit_status = error.exit_status
    return context


def run_edit_loop(
    prompt: str,
    artifact: Artifact,
    *,
    provider: StructuredProvider,
    store: UploadStore,
    config: SessionConfig,
    runner: Runner = run_process,
    on_event: EventSink | None = None,
) -> EditResult:
    """Turn ``prompt`` into a command on ``artifact`` and run it.

    At most ``config.max_retries + 1`` descriptors are generated. Outputs of
    failed attempts are deleted before the next attempt.

    Args:
        prompt: The user's editing request
        artifact: The media the command reads
        provider: Structured generation backend
        store: Resolves the input path and hands out output paths
        config: Retry budget, timeout and binaries
        runner: Process execution function
        on_event: Optional sink for progress messages (level, message)

    Returns:
        EditResult describing the successful command

    Raises:
        InvalidPromptError: The prompt is empty.
        ExhaustedFailure: Every attempt failed.
    """
    if not prompt or not prompt.strip():
        raise InvalidPromptError("Prompt must not be empty")
    prompt = prompt.strip()

    input_path = store.resolve_path(artifact)
    binaries = {Program.FFMPEG: config.ffmpeg_bin, Program.FFPROBE: config.ffprobe_bin}
    max_attempts = config.max_retries + 1
    failures: list[AttemptContext] = []

    for attempt in range(1, max_attempts + 1):
        logger.debug("Edit attempt %d/%d", attempt, max_attempts)
        _emit(on_event, "info", f"Generating command (attempt {attempt}/{max_attempts})")
        command: AssembledCommand | None = None

        try:
            descriptor = generate_descriptor(
                provider,
                prompt,
                artifact.media_kind,
                failures,
                config.max_output_chars,
            )
            command = assemble_command(
                descriptor,
                input_path,
                store.fresh_temp_path,
                binaries,
            )
            logger.info("Running command: %s", command.command_line)
            _emit(on_event, "info", f"Running: {command.command_line}")
            result = execute_command(descriptor, command, runner, config.command_timeout)
            validate_output(descriptor, command, result)
        except MediaAgentError as exc:
            if not exc.retryable:
                raise
            if command is not None and command.output_path is not None:
                store.discard(command.output_path)
            failure = _attempt_context(attempt, prompt, artifact, exc, command)
            failures.append(failure)
            logger.warning(
                "Edit attempt %d/%d failed (%s): %s",
                attempt,
                max_attempts,
                exc.kind,
                str(exc)[:500],
            )
            _emit(on_event, "error", f"Attempt {attempt} failed: {str(exc)[:500]}")
            continue

        logger.info("Edit succeeded on attempt %d: %s", attempt, command.command_line)
        _emit(on_event, "success", f"Command succeeded: {command.command_line}")
        return EditResult(
            descriptor=descriptor,
            argv=command.argv,
            command_line=command.command_line,
            exit_status=result.exit_status,
            stdout=result.stdout,
            stderr=result.stderr,
            output_path=command.output_path,
            attempts=attempt,
            failures=failures,
        )

    exhausted = ExhaustedFailure(failures)
    logger.error("Edit failed after %d attempt(s): %s", len(failures), failures[-1].error[:500])
    _emit(on_event, "error", str(exhausted))
    raise exhausted
