"""Types for the command agent.

This module defines the contract the language model must satisfy
(``CommandDescriptor``, ``Explanation``), the per-attempt repair context and
the final result of a successful edit.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from media_agent.models.media_models import MediaKind, OutputExtension


INPUT_FLAG = "-i"


class Program(str, Enum):
    """Executables a descriptor may name."""

    FFMPEG = "ffmpeg"
    FFPROBE = "ffprobe"


class CommandDescriptor(BaseModel):
    """What to run, before the input and output are injected."""

    model_config = ConfigDict(extra="forbid")

    program: Program = Field(description="Executable to run")
    arguments: list[str] = Field(
        description=(
            "Arguments after the input and before the output. "
            "Never includes the -i flag, the input path or the output path."
        ),
    )
    output_extension: OutputExtension = Field(
        description="Extension of the file the command writes, or 'none'",
    )

    RESPONSE_FORMAT: ClassVar[dict[str, Any]] = {
        "type": "json_schema",
        "json_schema": {
            "name": "command_descriptor",
            "strict": True,
            "schema": {
                "type": "object",
                "properties": {
                    "program": {
                        "type": "string",
                        "enum": [p.value for p in Program],
                        "description": "ffmpeg to transform media, ffprobe to inspect it",
                    },
                    "arguments": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": (
                            "Arguments placed after '-i <input>' and before the output path"
                        ),
                    },
                    "output_extension": {
                        "type": "string",
                        "enum": [e.value for e in OutputExtension],
                        "description": (
                            "Extension of the output file, or 'none' when nothing is written"
                        ),
                    },
                },
                "required": ["program", "arguments", "output_extension"],
                "additionalProperties": False,
            },
        },
    }

    @property
    def writes_file(self) -> bool:
        return self.program is Program.FFMPEG and self.output_extension.writes_file


class Explanation(BaseModel):
    """Plain-language summary of what an executed command did."""

    model_config = ConfigDict(extra="forbid")

    explanation: str = Field(description="What the command did, for a non-expert")
    confidence: float = Field(
        ge=0,
        le=10,
        multiple_of=0.5,
        description="Confidence the command did what was asked, 0-10 in half points",
    )

    RESPONSE_FORMAT: ClassVar[dict[str, Any]] = {
        "type": "json_schema",
        "json_schema": {
            "name": "command_explanation",
            "strict": True,
            "schema": {
                "type": "object",
                "properties": {
                    "explanation": {"type": "string"},
                    "confidence": {
                        "type": "number",
                        "minimum": 0,
                        "maximum": 10,
                        "multipleOf": 0.5,
                    },
                },
                "required": ["explanation", "confidence"],
                "additionalProperties": False,
            },
        },
    }


class AttemptContext(BaseModel):
    """What happened on one failed attempt, fed back into the next one."""

    attempt: int
    prompt: str
    media_kind: MediaKind
    error_kind: str
    error: str
    command_line: str | None = None
    stdout: str = ""
    stderr: str = ""
    exit_status: int | None = None


class EditResult(BaseModel):
    """Outcome of a successful run of the repair loop."""

    descriptor: CommandDescriptor
    argv: list[str]
    command_line: str
    exit_status: int
    stdout: str = ""
    stderr: str = ""
    output_path: Path | None = None
    attempts: int = 1
    failures: list[AttemptContext] = Field(default_factory=list)

    @property
    def produced_file(self) -> bool:
        return self.output_path is not None
