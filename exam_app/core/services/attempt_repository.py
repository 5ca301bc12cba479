"""Persistence of exam attempt records."""

from __future__ import annotations

import asyncio
import copy
from typing import Protocol
from uuid import uuid4

from exam_app.core.errors import PersistenceFailure
from exam_app.core.models import ExamAttemptRecord


class AttemptRepository(Protocol):
    """Storage collaborator used by the scoring pipeline."""

    async def has_attempt(self, student_id: str, exam_id: str) -> bool:
        ...

    async def save_attempt(self, record: ExamAttemptRecord) -> str:
        """Store a new record and return its id."""
        ...

    async def update_attempt(self, record: ExamAttemptRecord) -> None:
        ...

    async def mark_exam_completed(self, exam_id: str, student_id: str) -> None:
        ...


class InMemoryAttemptRepository:
    """Keeps attempt records in process memory. Records are copied on every write."""

    def __init__(self) -> None:
        self._records: dict[str, ExamAttemptRecord] = {}
        self._completions: set[tuple[str, str]] = set()
        self._lock = asyncio.Lock()

    async def has_attempt(self, student_id: str, exam_id: str) -> bool:
        async with self._lock:
            return any(
                record.student_id == student_id and record.exam_id == exam_id
                for record in self._records.values()
            )

    async def save_attempt(self, record: ExamAttemptRecord) -> str:
        async with self._lock:
            stored = copy.deepcopy(record)
            stored.record_id = uuid4().hex
            self._records[stored.record_id] = stored
            return stored.record_id

    async def update_attempt(self, record: ExamAttemptRecord) -> None:
        async with self._lock:
            if record.record_id is None or record.record_id not in self._records:
                raise PersistenceFailure(f"No stored attempt with id {record.record_id!r} to update.")
            self._records[record.record_id] = copy.deepcopy(record)

    async def mark_exam_completed(self, exam_id: str, student_id: str) -> None:
        async with self._lock:
            self._completions.add((exam_id, student_id))

    def get_attempts(self, student_id: str | None = None, exam_id: str | None = None) -> list[ExamAttemptRecord]:
        """Return copies of the stored records matching the optional filters."""
        return [
            copy.deepcopy(record)
            for record in self._records.values()
            if (student_id is None or record.student_id == student_id)
            and (exam_id is None or record.exam_id == exam_id)
        ]

    def is_exam_completed(self, exam_id: str, student_id: str) -> bool:
        return (exam_id, student_id) in self._completions
