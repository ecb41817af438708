"""Command Agent.

This agent turns a media editing request into an ffmpeg or ffprobe command by:
1. Generating a schema-constrained command descriptor with an LLM
2. Assembling and running the command
3. Validating what the command produced
4. Repairing failed attempts with the observed output as context

Usage:
    from media_agent.agent.command_agent import run_edit_loop, OpenAIStructuredProvider

    result = run_edit_loop(
        "extract the audio as mp3",
        artifact,
        provider=OpenAIStructuredProvider.from_config(config),
        store=store,
        config=config,
    )
"""

from .agent import execute_command, failure_reason, run_edit_loop, validate_output
from .assembly import AssembledCommand, assemble_command
from .descriptor import build_messages, check_descriptor_policy, generate_descriptor
from .explanation import explain_result
from .provider import OpenAIStructuredProvider, StructuredProvider
from .types import (
    INPUT_FLAG,
    AttemptContext,
    CommandDescriptor,
    EditResult,
    Explanation,
    Program,
)


__all__ = [
    # Main entry point
    "run_edit_loop",
    # Stages
    "generate_descriptor",
    "check_descriptor_policy",
    "build_messages",
    "assemble_command",
    "AssembledCommand",
    "execute_command",
    "validate_output",
    "failure_reason",
    "explain_result",
    # Providers
    "StructuredProvider",
    "OpenAIStructuredProvider",
    # Types
    "INPUT_FLAG",
    "Program",
    "CommandDescriptor",
    "AttemptContext",
    "EditResult",
    "Explanation",
]
