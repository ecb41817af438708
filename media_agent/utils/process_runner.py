"""Blocking subprocess execution with captured output."""
from __future__ import annotations

import logging
import shlex
import signal
import subprocess
from dataclasses import dataclass
from typing import Callable, Sequence

from media_agent.errors import CommandTimeoutError, SpawnError

logger = logging.getLogger(__name__)

MAX_LOGGED_COMMAND_CHARS = 4000


@dataclass(frozen=True)
class ProcessResult:
    exit_status: int
    stdout: str
    stderr: str
    signal: str | None = None

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


Runner = Callable[[Sequence[str], float], ProcessResult]


def format_command(argv: Sequence[str]) -> str:
    return shlex.join(str(arg) for arg in argv)


def _truncate_for_log(text: str) -> str:
    if len(text) > MAX_LOGGED_COMMAND_CHARS:
        return f"{text[:MAX_LOGGED_COMMAND_CHARS]}... [truncated]"
    return text


def _decode(value: bytes | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def _signal_name(returncode: int) -> str | None:
    if returncode >= 0:
        return None
    try:
        return signal.Signals(-returncode).name
    except ValueError:
        return f"SIG{-returncode}"


def run_process(argv: Sequence[str], timeout: float) -> ProcessResult:
    """Run ``argv`` to completion and capture stdout and stderr separately.

    A non-zero exit status is returned, not raised: whether it means failure
    depends on the program. On timeout the child is killed and
    ``CommandTimeoutError`` is raised with whatever output was captured.

    Raises:
        CommandTimeoutError: The process did not finish within ``timeout``.
        SpawnError: The executable could not be started.
    """
    cmd = [str(arg) for arg in argv]
    command_line = format_command(cmd)
    logger.debug("Spawning: %s", _truncate_for_log(command_line))

    try:
        completed = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        logger.warning("Command timed out after %ss: %s", timeout, cmd[0])
        raise CommandTimeoutError(
            f"{cmd[0]} timed out after {timeout}s",
            timeout=timeout,
            command_line=command_line,
            stdout=_decode(exc.stdout),
            stderr=_decode(exc.stderr),
        ) from exc
    except OSError as exc:
        logger.warning("Failed to start %s: %s", cmd[0], exc)
        raise SpawnError(
            f"Failed to start {cmd[0]}: {exc}",
            command_line=command_line,
        ) from exc

    result = ProcessResult(
        exit_status=completed.returncode,
        stdout=_decode(completed.stdout),
        stderr=_decode(completed.stderr),
        signal=_signal_name(completed.returncode),
    )
    if result.ok:
        logger.debug("Command finished: %s", cmd[0])
    else:
        logger.info(
            "Command %s exited with status %s%s",
            cmd[0],
            result.exit_status,
            f" ({result.signal})" if result.signal else "",
        )
    return result
