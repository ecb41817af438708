from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from media_agent.agent.command_agent.types import AttemptContext
from media_agent.models.media_models import EditRecord, MediaKind


class StartSessionRequest(BaseModel):
    filename: str = Field(description="Display name of the uploaded file")
    path: str = Field(description="Where the upload store saved the file")


class EditRequestBody(BaseModel):
    prompt: str = Field(description="Editing request in natural language")


class EditRecordResponse(BaseModel):
    index: int
    filename: str
    path: Path
    media_kind: MediaKind
    prompt: str | None
    command: str | None
    created_at: datetime

    @classmethod
    def from_record(cls, index: int, record: EditRecord) -> "EditRecordResponse":
        return cls(
            index=index,
            filename=record.artifact.filename,
            path=record.artifact.location,
            media_kind=record.artifact.media_kind,
            prompt=record.prompt,
            command=record.command,
            created_at=record.created_at,
        )


class SessionStateResponse(BaseModel):
    session_id: str
    records: list[EditRecordResponse]
    current: EditRecordResponse
    can_undo: bool
    busy: bool


class ExplanationBody(BaseModel):
    explanation: str
    confidence: float


class EditResponse(BaseModel):
    command: str
    exit_status: int
    stdout: str
    stderr: str
    attempts: int
    output: EditRecordResponse | None = None
    explanation: ExplanationBody | None = None
    failures: list[AttemptContext] = Field(default_factory=list)


class EditFailureResponse(BaseModel):
    message: str
    last_command: str | None = None
    failures: list[AttemptContext] = Field(default_factory=list)


class UndoResponse(BaseModel):
    undone: bool
    current: EditRecordResponse


class ResetResponse(BaseModel):
    current: EditRecordResponse
