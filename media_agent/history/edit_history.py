"""Linear edit history with undo and reset-to-origin.

The first record pushed is the origin. ``reset`` truncates back to it and
``undo`` never removes it. There is no redo: an undone edit can only be
recovered by running the prompt again.
"""

from __future__ import annotations

import logging
from typing import Iterator

from media_agent.errors import MediaAgentError
from media_agent.models.media_models import EditRecord

logger = logging.getLogger(__name__)


class EmptyHistoryError(MediaAgentError, LookupError):
    """Raised when reading a history before its origin was pushed."""

    kind = "empty_history"

    def __init__(self, message: str = "Edit history is empty"):
        super().__init__(message)


class EditHistory:
    def __init__(self) -> None:
        self._records: list[EditRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[EditRecord]:
        return iter(list(self._records))

    @property
    def can_undo(self) -> bool:
        return len(self._records) > 1

    def records(self) -> list[EditRecord]:
        return list(self._records)

    def push(self, record: EditRecord) -> EditRecord:
        self._records.append(record)
        logger.debug("History push: %s (size=%d)", record.artifact.filename, len(self._records))
        return record

    def current(self) -> EditRecord:
        if not self._records:
            raise EmptyHistoryError()
        return self._records[-1]

    def original(self) -> EditRecord:
        if not self._records:
            raise EmptyHistoryError()
        return self._records[0]

    def previous(self) -> EditRecord | None:
        if len(self._records) < 2:
            return None
        return self._records[-2]

    def undo(self) -> EditRecord | None:
        """Drop the latest edit and return the record that becomes current.

        Returns None, leaving the history untouched, when only the origin
        (or nothing) remains.
        """
        if len(self._records) <= 1:
            logger.debug("Nothing to undo")
            return None
        dropped = self._records.pop()
        logger.debug("History undo: dropped %s", dropped.artifact.filename)
        return self._records[-1]

    def reset(self) -> EditRecord:
        """Discard every edit after the origin and return the origin."""
        origin = self.original()
        if len(self._records) > 1:
            logger.debug("History reset: discarding %d edits", len(self._records) - 1)
            del self._records[1:]
        return origin
