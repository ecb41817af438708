"""A single editing session: one uploaded file and its edit history.

One operation runs at a time. A ``submit``, ``start``, ``undo`` or ``reset``
while another one is running is rejected rather than queued.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import PurePath
from uuid import uuid4

from pydantic import BaseModel

from media_agent.config import SessionConfig
from media_agent.errors import SessionBusyError, SessionNotStartedError
from media_agent.history.edit_history import EditHistory
from media_agent.models.media_models import Artifact, EditRecord
from media_agent.utils.process_runner import Runner, run_process
from media_agent.utils.upload_store import UploadStore

from .command_agent import (
    EditResult,
    Explanation,
    StructuredProvider,
    explain_result,
    run_edit_loop,
)
from .command_agent.agent import EventSink

logger = logging.getLogger(__name__)


class SubmitResult(BaseModel):
    """Outcome of one submitted prompt."""

    result: EditResult
    record: EditRecord | None = None
    explanation: Explanation | None = None


class EditSession:
    def __init__(
        self,
        config: SessionConfig,
        provider: StructuredProvider,
        store: UploadStore | None = None,
        runner: Runner = run_process,
        on_event: EventSink | None = None,
    ):
        self.session_id = str(uuid4())
        self.config = config
        self.provider = provider
        self.store = store or UploadStore(config.temp_dir)
        self.runner = runner
        self.on_event = on_event
        self.history = EditHistory()
        self._edit_count = 0
        self._lock = threading.Lock()

    @property
    def started(self) -> bool:
        return len(self.history) > 0

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def _exclusive(self):
        if not self._lock.acquire(blocking=False):
            raise SessionBusyError("An edit is in progress")
        try:
            yield
        finally:
            self._lock.release()

    def start(self, filename: str, path: str) -> EditRecord:
        """Register an uploaded file as the origin of a fresh history."""
        artifact = self.store.register(filename, path)
        with self._exclusive():
            self.history = EditHistory()
            self._edit_count = 0
            origin = self.history.push(EditRecord(artifact=artifact))
        logger.info(
            "Session %s started with %s (%s)",
            self.session_id,
            artifact.filename,
            artifact.media_kind.value,
        )
        return origin

    def current(self) -> EditRecord:
        self._require_started()
        return self.history.current()

    def submit(self, prompt: str) -> SubmitResult:
        """Run ``prompt`` against the current artifact.

        A command that writes a file becomes the new current record. Commands
        without file output (probes, analysis) leave the history unchanged.

        Raises:
            SessionNotStartedError: No file has been uploaded yet.
            SessionBusyError: Another operation is still running.
            InvalidPromptError: The prompt is empty.
            ExhaustedFailure: Every attempt failed.
        """
        self._require_started()
        with self._exclusive():
            source = self.history.current()
            result = run_edit_loop(
                prompt,
                source.artifact,
                provider=self.provider,
                store=self.store,
                config=self.config,
                runner=self.runner,
                on_event=self.on_event,
            )

            record = None
            if result.output_path is not None:
                self._edit_count += 1
                artifact = Artifact.from_path(
                    self._output_filename(result.descriptor.output_extension.value),
                    result.output_path,
                )
                record = self.history.push(EditRecord(
                    artifact=artifact,
                    prompt=prompt.strip(),
                    command=result.command_line,
                ))
                logger.info("Session %s: new artifact %s", self.session_id, artifact.filename)

            explanation = explain_result(self.provider, prompt, result, self.config)
            return SubmitResult(result=result, record=record, explanation=explanation)

    def undo(self) -> EditRecord | None:
        """Drop the latest edit. Returns None when there is nothing to undo."""
        self._require_started()
        with self._exclusive():
            return self.history.undo()

    def previous(self) -> EditRecord | None:
        self._require_started()
        return self.history.previous()

    def reset(self) -> EditRecord:
        self._require_started()
        with self._exclusive():
            return self.history.reset()

    def close(self) -> None:
        self.store.cleanup()

    def _output_filename(self, extension: str) -> str:
        # numbered per session so undone edits never share a name with later ones
        stem = PurePath(self.history.original().artifact.filename).stem or "output"
        return f"{stem}_edit{self._edit_count}.{extension}"

    def _require_started(self) -> None:
        if not self.started:
            raise SessionNotStartedError("Upload a file before editing")
