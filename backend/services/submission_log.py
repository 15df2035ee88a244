"""Append-only outcome log for row submissions."""

from __future__ import annotations

import copy
import threading
from typing import Any, Dict, Iterator, List, Mapping, Optional

from models.schemas import LogEntry, LogStatus
from utils.validation import get_now


class SubmissionLog:
    """Insertion-ordered record of submission outcomes.

    Entries are only ever appended; readers get copies.
    """

    def __init__(self) -> None:
        self._entries: List[LogEntry] = []
        self._lock = threading.Lock()

    def append(
        self,
        row_index: int,
        status: LogStatus,
        message: Optional[str] = None,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> LogEntry:
        entry = LogEntry(
            row_index=row_index,
            status=status,
            timestamp=get_now(),
            message=message,
            payload=copy.deepcopy(dict(payload)) if payload is not None else None,
        )
        with self._lock:
            self._entries.append(entry)
        return entry

    def success(self, row_index: int, message: Optional[str] = None) -> LogEntry:
        return self.append(row_index, LogStatus.SUCCESS, message)

    def error(self, row_index: int, message: Optional[str] = None, payload: Optional[Mapping[str, Any]] = None) -> LogEntry:
        return self.append(row_index, LogStatus.ERROR, message or "Unknown error", payload)

    def skipped(self, row_index: int, message: Optional[str] = None, payload: Optional[Mapping[str, Any]] = None) -> LogEntry:
        return self.append(row_index, LogStatus.SKIPPED, message, payload)

    def entries(self) -> List[LogEntry]:
        with self._lock:
            return [e.model_copy(deep=True) for e in self._entries]

    def counts(self) -> Dict[str, int]:
        out = {s.value: 0 for s in LogStatus}
        with self._lock:
            for e in self._entries:
                out[e.status] += 1
        return out

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self.entries()]

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Per-view activity logs, the server-side twin of each manage page's log list
_activity_logs: Dict[str, SubmissionLog] = {}
_activity_lock = threading.Lock()


def get_activity_log(name: str) -> SubmissionLog:
    with _activity_lock:
        log = _activity_logs.get(name)
        if log is None:
            log = SubmissionLog()
            _activity_logs[name] = log
        return log


def reset_activity_logs() -> None:
    with _activity_lock:
        _activity_logs.clear()
