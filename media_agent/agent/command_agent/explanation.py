"""Best-effort natural-language explanation of an executed command."""

from __future__ import annotations

import logging

from media_agent.config import SessionConfig
from media_agent.errors import ExplanationError, MediaAgentError

from .prompts import EXPLANATION_SYSTEM_PROMPT, build_explanation_prompt
from .provider import StructuredProvider
from .types import EditResult, Explanation

logger = logging.getLogger(__name__)


def explain_result(
    provider: StructuredProvider,
    prompt: str,
    result: EditResult,
    config: SessionConfig,
) -> Explanation | None:
    """Summarize what ``result`` did. Never raises; returns None on failure."""
    if not config.explain:
        return None

    messages = [
        {"role": "system", "content": EXPLANATION_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": build_explanation_prompt(
                prompt,
                result.command_line,
                result.stdout,
                result.stderr,
                config.max_output_chars,
            ),
        },
    ]
    try:
        return provider.generate(Explanation, messages, max_retries=config.explanation_retries)
    except MediaAgentError as exc:
        error = ExplanationError(f"Explanation failed ({exc.kind}): {exc}")
    except Exception as exc:
        error = ExplanationError(f"Explanation failed: {type(exc).__name__}: {exc}")
    logger.warning("%s", error)
    return None
