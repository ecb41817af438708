"""Error taxonomy for the command agent.

Every retryable error is turned into an ``AttemptContext`` by the repair loop.
Only ``ExhaustedFailure`` and the structural errors (bad upload, empty prompt)
reach the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from media_agent.agent.command_agent.types import AttemptContext


class MediaAgentError(Exception):
    kind = "media_agent_error"
    retryable = False


class SchemaError(MediaAgentError):
    """Model output does not fit the requested schema."""

    kind = "schema"
    retryable = True

    def __init__(self, message: str, raw_output: str | None = None):
        super().__init__(message)
        self.raw_output = raw_output


class PolicyError(MediaAgentError):
    """A well-formed descriptor that breaks a domain rule."""

    kind = "policy"
    retryable = True

    def __init__(self, message: str, offending: str | None = None):
        super().__init__(message)
        self.offending = offending


class ProviderError(MediaAgentError):
    """The language model backend failed to answer."""

    kind = "provider"
    retryable = True


class ExecutionError(MediaAgentError):
    kind = "execution"
    retryable = True

    def __init__(
        self,
        message: str,
        command_line: str | None = None,
        stdout: str = "",
        stderr: str = "",
        exit_status: int | None = None,
    ):
        super().__init__(message)
        self.command_line = command_line
        self.stdout = stdout
        self.stderr = stderr
        self.exit_status = exit_status


class CommandTimeoutError(ExecutionError):
    kind = "timeout"

    def __init__(self, message: str, timeout: float, **kwargs):
        super().__init__(message, **kwargs)
        self.timeout = timeout


class SpawnError(ExecutionError):
    kind = "spawn"


class OutputValidationError(MediaAgentError):
    """The command ran but did not produce what was asked for."""

    kind = "validation"
    retryable = True

    def __init__(
        self,
        message: str,
        command_line: str | None = None,
        stdout: str = "",
        stderr: str = "",
        exit_status: int | None = None,
    ):
        super().__init__(message)
        self.command_line = command_line
        self.stdout = stdout
        self.stderr = stderr
        self.exit_status = exit_status


class ExplanationError(MediaAgentError):
    kind = "explanation"


class ExhaustedFailure(MediaAgentError):
    """Every attempt allowed by the retry budget failed."""

    kind = "exhausted"

    def __init__(self, failures: list["AttemptContext"]):
        self.failures = failures
        super().__init__(self._build_message())

    @property
    def last_command_line(self) -> str | None:
        for failure in reversed(self.failures):
            if failure.command_line:
                return failure.command_line
        return None

    def _build_message(self) -> str:
        if not self.failures:
            return "No attempts were made"
        last = self.failures[-1]
        lines = [f"Failed after {len(self.failures)} attempt(s): {last.error}"]
        command_line = self.last_command_line
        if command_line:
            lines.append(f"Last command: {command_line}")
        if last.stderr:
            lines.append(f"stderr:\n{last.stderr}")
        return "\n".join(lines)


class InvalidPromptError(MediaAgentError, ValueError):
    kind = "invalid_prompt"


class SessionBusyError(MediaAgentError):
    kind = "session_busy"


class SessionNotStartedError(MediaAgentError):
    kind = "session_not_started"
