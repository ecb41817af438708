"""Generate a command descriptor and check it against domain rules.

Nothing here touches the filesystem: this step only decides what to run.
"""

from __future__ import annotations

import logging
from typing import Any

from media_agent.errors import PolicyError
from media_agent.models.media_models import MediaKind

from .prompts import SYSTEM_PROMPT, build_repair_prompt, build_user_prompt
from .provider import StructuredProvider
from .types import INPUT_FLAG, AttemptContext, CommandDescriptor, Program

logger = logging.getLogger(__name__)


def build_messages(
    prompt: str,
    media_kind: MediaKind,
    attempts: list[AttemptContext] | None = None,
    max_output_chars: int = 4000,
) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(prompt, media_kind)},
    ]
    for attempt in attempts or []:
        messages.append({
            "role": "user",
            "content": build_repair_prompt(attempt, max_output_chars),
        })
    return messages


def check_descriptor_policy(descriptor: CommandDescriptor) -> CommandDescriptor:
    """Reject descriptors that are well-formed but unsafe or meaningless.

    Raises:
        PolicyError: A second input is smuggled in, an argument is empty, or
            ffprobe is asked to write a file.
    """
    for argument in descriptor.arguments:
        if argument.strip() == INPUT_FLAG:
            raise PolicyError(
                f"Arguments must not contain '{INPUT_FLAG}': the input is injected automatically",
                offending=argument,
            )
        if not argument:
            raise PolicyError("Arguments must not contain empty strings", offending=argument)

    if descriptor.program is Program.FFPROBE and descriptor.output_extension.writes_file:
        raise PolicyError(
            "ffprobe does not write files: use output_extension 'none'",
            offending=descriptor.output_extension.value,
        )
    return descriptor


def generate_descriptor(
    provider: StructuredProvider,
    prompt: str,
    media_kind: MediaKind,
    attempts: list[AttemptContext] | None = None,
    max_output_chars: int = 4000,
) -> CommandDescriptor:
    """Ask the model for a descriptor, grounded in any earlier failures.

    Raises:
        SchemaError: The model output does not fit ``CommandDescriptor``.
        PolicyError: The descriptor breaks a domain rule.
        ProviderError: The model could not be reached.
    """
    messages = build_messages(prompt, media_kind, attempts, max_output_chars)
    descriptor = provider.generate(CommandDescriptor, messages, max_retries=0)
    logger.debug(
        "Generated descriptor: program=%s args=%s ext=%s",
        descriptor.program.value,
        descriptor.arguments,
        descriptor.output_extension.value,
    )
    return check_descriptor_policy(descriptor)
