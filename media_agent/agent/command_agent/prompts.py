"""Prompts for the command agent.

The command agent turns an editing request into one ffmpeg or ffprobe
invocation. Failed attempts are replayed to the model as repair context.
"""

from __future__ import annotations

from media_agent.models.media_models import EXTENSION_KINDS, MediaKind

from .types import AttemptContext

_EXTENSIONS_BY_KIND = {
    kind: ", ".join(ext for ext, ext_kind in EXTENSION_KINDS.items() if ext_kind is kind)
    for kind in MediaKind
}

SYSTEM_PROMPT = f"""You are an expert in ffmpeg and ffprobe. You turn a user's media editing request into a single command.

## How the command is built

The final command line is always assembled as:

    <program> -i <input file> <arguments> <output>

- `program` is `ffmpeg` to transform media or `ffprobe` to inspect it.
- The input is injected for you. NEVER put `-i` or any input path in `arguments`.
- The output is injected for you. NEVER put an output path in `arguments`.
- `output_extension` picks the format of the output file ffmpeg writes.
- Use `output_extension: "none"` when nothing should be written: ffprobe always
  uses "none", and ffmpeg with "none" runs with `-f null -` (useful for
  analysis filters such as volumedetect).

## Supported extensions

- audio: {_EXTENSIONS_BY_KIND[MediaKind.AUDIO]}
- video: {_EXTENSIONS_BY_KIND[MediaKind.VIDEO]}
- image: {_EXTENSIONS_BY_KIND[MediaKind.IMAGE]}

## Guidelines

1. Choose arguments that work for the given input media kind.
2. Each argument is a separate string, exactly as it would appear in argv. Do not quote for a shell.
3. Prefer widely available encoders (libx264, aac, libmp3lame).
4. Keep the command minimal: only what the request needs.

Respond with a single JSON object: {{"program": ..., "arguments": [...], "output_extension": ...}}.
"""

EXPLANATION_SYSTEM_PROMPT = """You explain media commands to non-experts.

Given the user's request, the command that was run and its output, explain briefly what the command did and whether it fulfils the request.
Rate your confidence that it did what the user asked from 0 to 10 in steps of 0.5.

Respond with a single JSON object: {"explanation": ..., "confidence": ...}.
"""


def build_user_prompt(prompt: str, media_kind: MediaKind) -> str:
    return f"Input media kind: {media_kind.value}\n\nRequest: {prompt}"


def _clip(text: str, limit: int) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    # ffmpeg puts the actual error at the end of stderr
    return f"... [truncated]\n{text[-limit:]}"


def build_repair_prompt(attempt: AttemptContext, max_output_chars: int = 4000) -> str:
    """Describe a failed attempt so the next generation can correct it."""
    parts = [f"## Attempt {attempt.attempt} failed ({attempt.error_kind})", attempt.error]

    if attempt.command_line:
        parts.append(f"Command that was run:\n{attempt.command_line}")
    if attempt.exit_status is not None:
        parts.append(f"Exit status: {attempt.exit_status}")
    if attempt.stderr:
        parts.append(f"stderr:\n{_clip(attempt.stderr, max_output_chars)}")
    if attempt.stdout:
        parts.append(f"stdout:\n{_clip(attempt.stdout, max_output_chars)}")

    parts.append(
        "Produce a corrected command for the same request. "
        "Do not repeat the mistake above."
    )
    return "\n\n".join(parts)


def build_explanation_prompt(
    prompt: str,
    command_line: str,
    stdout: str,
    stderr: str,
    max_output_chars: int = 4000,
) -> str:
    parts = [f"Request: {prompt}", f"Command:\n{command_line}"]
    if stdout.strip():
        parts.append(f"stdout:\n{_clip(stdout, max_output_chars)}")
    if stderr.strip():
        parts.append(f"stderr:\n{_clip(stderr, max_output_chars)}")
    return "\n\n".join(parts)
