"""Turn a command descriptor into an argument vector.

Argument order is fixed: program, ``-i <input>``, the model's arguments,
then the computed output arguments.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from media_agent.utils.process_runner import format_command

from .types import INPUT_FLAG, CommandDescriptor, Program

NULL_OUTPUT_ARGS = ["-f", "null", "-"]


@dataclass(frozen=True)
class AssembledCommand:
    argv: list[str]
    output_path: Path | None

    @property
    def command_line(self) -> str:
        return format_command(self.argv)


def output_args(
    descriptor: CommandDescriptor,
    fresh_output_path: Callable[[str], Path],
) -> tuple[list[str], Path | None]:
    if descriptor.program is Program.FFPROBE:
        return [], None
    if not descriptor.output_extension.writes_file:
        return list(NULL_OUTPUT_ARGS), None
    output_path = fresh_output_path(descriptor.output_extension.value)
    return [str(output_path)], output_path


def assemble_command(
    descriptor: CommandDescriptor,
    input_path: str | Path,
    fresh_output_path: Callable[[str], Path],
    binaries: dict[Program, str] | None = None,
) -> AssembledCommand:
    """Build the argv for ``descriptor`` run against ``input_path``.

    Args:
        descriptor: Validated descriptor from the model
        input_path: File the command reads
        fresh_output_path: Returns a new unique path for a given extension
        binaries: Optional executable override per program

    Returns:
        AssembledCommand with the argv and the output path, if any
    """
    binary = (binaries or {}).get(descriptor.program, descriptor.program.value)
    extra, output_path = output_args(descriptor, fresh_output_path)
    argv = [
        binary,
        INPUT_FLAG,
        str(input_path),
        *descriptor.arguments,
        *extra,
    ]
    return AssembledCommand(argv=argv, output_path=output_path)
