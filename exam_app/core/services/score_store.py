"""Service for persisting student scores in a single JSON file.

Every mutation rewrites the whole array. Before each write the current file is
copied to a backup path, and the new content goes through a temporary sibling
file and ``os.replace`` so readers only ever see a complete document.

Writers are serialized by one lock held for the entire read-modify-write.
A writer that cannot get the lock within ``write_timeout`` seconds is rejected
with ``WriteInProgressError``; ``write_timeout=0`` rejects immediately and
``None`` waits indefinitely.
"""

from __future__ import annotations

import json
import logging
import math
import os
import re
import shutil
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from threading import Lock
from typing import Any, Iterator

from exam_app.constants.exam_constants import MAX_SCORE, MAX_SUBMISSIONS, MIN_SCORE, WRITE_TIMEOUT_SECONDS
from exam_app.core.models import AnswerDetail, ScoreRecord

logger = logging.getLogger(__name__)

_STUDENT_NUMBER_PATTERN = re.compile(r"[A-Za-z0-9]+")


class WriteInProgressError(RuntimeError):
    """Raised when another writer holds the score file for too long."""


class ScoreStorageError(RuntimeError):
    """Raised when the score file cannot be written."""


class SubmissionStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    INVALID = "invalid"
    LIMIT_REACHED = "limit_reached"


@dataclass(slots=True)
class SubmissionResult:
    """Outcome of a score submission."""

    status: SubmissionStatus
    record: ScoreRecord | None = None
    submit_count: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.status in (SubmissionStatus.CREATED, SubmissionStatus.UPDATED)

    @property
    def message(self) -> str:
        if self.status is SubmissionStatus.INVALID:
            return "; ".join(self.errors)
        if self.status is SubmissionStatus.LIMIT_REACHED:
            return f"Submission limit reached ({MAX_SUBMISSIONS} submissions per student number)"
        return "Score submitted successfully"


def validate_submission(data: dict[str, Any]) -> list[str]:
    """Return every rule the submission breaks; an empty list means valid."""
    errors: list[str] = []

    if not _is_non_empty_string(data.get("name")):
        errors.append("Name is required")
    if not _is_non_empty_string(data.get("className")):
        errors.append("Class name is required")

    student_number = data.get("studentNumber")
    if not _is_non_empty_string(student_number):
        errors.append("Student number is required")
    elif not _STUDENT_NUMBER_PATTERN.fullmatch(student_number):
        errors.append("Student number may only contain letters and digits")

    score = data.get("score")
    if not _is_number(score) or score < MIN_SCORE or score > MAX_SCORE:
        errors.append(f"Score must be a number between {MIN_SCORE:g} and {MAX_SCORE:g}")

    for key, label in (
        ("correctCount", "Correct count"),
        ("wrongCount", "Wrong count"),
        ("unansweredCount", "Unanswered count"),
    ):
        value = data.get(key)
        if not _is_number(value) or value < 0:
            errors.append(f"{label} must be a non-negative number")

    return errors


class ScoreStore:
    """Reads and rewrites the score file on behalf of the exam manager."""

    def __init__(
        self,
        scores_path: Path,
        backup_path: Path | None = None,
        write_timeout: float | None = WRITE_TIMEOUT_SECONDS,
    ) -> None:
        self._scores_path = Path(scores_path)
        self._backup_path = (
            Path(backup_path)
            if backup_path is not None
            else self._scores_path.with_name(f"{self._scores_path.stem}_backup{self._scores_path.suffix}")
        )
        self._write_timeout = write_timeout
        self._write_lock = Lock()

    @property
    def scores_path(self) -> Path:
        return self._scores_path

    @property
    def backup_path(self) -> Path:
        return self._backup_path

    def ensure_initialized(self) -> None:
        """Create an empty score file if none exists yet."""
        if self._scores_path.exists():
            return
        with self._write_guard():
            if not self._scores_path.exists():
                self._persist([], refresh_backup=False)
                logger.info("Created empty score file at %s", self._scores_path)

    # --- Reads ---

    def list_all(self) -> list[ScoreRecord]:
        records, _ = self._load()
        return records

    def get(self, student_number: str) -> ScoreRecord | None:
        records, _ = self._load()
        index = _find_index(records, student_number)
        return None if index is None else records[index]

    # --- Writes ---

    def submit(self, payload: dict[str, Any]) -> SubmissionResult:
        data = dict(payload)
        if not data.get("unansweredCount"):
            data["unansweredCount"] = 0

        errors = validate_submission(data)
        if errors:
            return SubmissionResult(status=SubmissionStatus.INVALID, errors=errors)

        student_number = data["studentNumber"]
        with self._write_guard():
            records, main_ok = self._load()
            index = _find_index(records, student_number)
            now = _utc_now()

            if index is None:
                record = _record_from_payload(data, submit_count=1, created_at=now)
                records.append(record)
                status = SubmissionStatus.CREATED
            else:
                existing = records[index]
                if existing.submit_count >= MAX_SUBMISSIONS:
                    logger.info("Rejected submission for %s: limit reached", student_number)
                    return SubmissionResult(
                        status=SubmissionStatus.LIMIT_REACHED,
                        record=existing,
                        submit_count=existing.submit_count,
                    )
                record = _record_from_payload(
                    data,
                    submit_count=existing.submit_count + 1,
                    created_at=existing.created_at,
                    updated_at=now,
                )
                records[index] = record
                status = SubmissionStatus.UPDATED

            self._persist(records, refresh_backup=main_ok)

        logger.info("Stored score for %s (submission %d)", student_number, record.submit_count)
        return SubmissionResult(status=status, record=record, submit_count=record.submit_count)

    def delete_one(self, student_number: str) -> bool:
        with self._write_guard():
            records, main_ok = self._load()
            remaining = [record for record in records if record.student_number != student_number]
            if len(remaining) == len(records):
                return False
            self._persist(remaining, refresh_backup=main_ok)
        logger.info("Deleted score for %s", student_number)
        return True

    def delete_all(self) -> int:
        with self._write_guard():
            records, main_ok = self._load()
            self._persist([], refresh_backup=main_ok)
        logger.info("Cleared %d score records", len(records))
        return len(records)

    # --- Internals ---

    @contextmanager
    def _write_guard(self) -> Iterator[None]:
        if self._write_timeout is None:
            acquired = self._write_lock.acquire()
        elif self._write_timeout <= 0:
            acquired = self._write_lock.acquire(blocking=False)
        else:
            acquired = self._write_lock.acquire(timeout=self._write_timeout)
        if not acquired:
            logger.warning("Score file is busy; rejecting write")
            raise WriteInProgressError("Score file is being written, please retry later")
        try:
            yield
        finally:
            self._write_lock.release()

    def _load(self) -> tuple[list[ScoreRecord], bool]:
        """Return the stored records and whether they came from the main file."""
        if not self._scores_path.exists():
            return [], True
        try:
            return _read_records(self._scores_path), True
        except (OSError, ValueError) as exc:
            logger.warning("Failed to read %s: %s", self._scores_path, exc)

        if self._backup_path.exists():
            logger.warning("Recovering scores from backup %s", self._backup_path)
            try:
                return _read_records(self._backup_path), False
            except (OSError, ValueError) as exc:
                logger.error("Backup %s is unreadable too: %s", self._backup_path, exc)
        return [], False

    def _persist(self, records: list[ScoreRecord], refresh_backup: bool) -> None:
        """Back up the current file and replace it with ``records``.

        Must be called with the write lock held. A main file that failed to
        parse is not copied over the backup.
        """
        document = json.dumps([record.to_dict() for record in records], ensure_ascii=False, indent=2)
        temp_path = self._scores_path.with_name(f"{self._scores_path.name}.tmp")
        try:
            self._scores_path.parent.mkdir(parents=True, exist_ok=True)
            if refresh_backup and self._scores_path.exists():
                shutil.copyfile(self._scores_path, self._backup_path)
            temp_path.write_text(document, encoding="utf-8")
            os.replace(temp_path, self._scores_path)
        except OSError as exc:
            logger.error("Failed to write %s: %s", self._scores_path, exc)
            raise ScoreStorageError(f"Could not write score file: {exc}") from exc


def _read_records(path: Path) -> list[ScoreRecord]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError("score file does not contain a JSON array")

    records: list[ScoreRecord] = []
    for position, item in enumerate(data):
        if not _is_usable_entry(item):
            logger.warning("Skipping malformed score entry #%d in %s", position, path)
            continue
        records.append(ScoreRecord.from_dict(item))
    return records


def _is_usable_entry(item: Any) -> bool:
    """Reports compare scores and sort by class, so both must have the right type."""
    if not isinstance(item, dict):
        return False
    return (
        isinstance(item.get("studentNumber"), str)
        and isinstance(item.get("className"), str)
        and _is_number(item.get("score"))
    )


def _find_index(records: list[ScoreRecord], student_number: str) -> int | None:
    return next((i for i, record in enumerate(records) if record.student_number == student_number), None)


def _record_from_payload(
    data: dict[str, Any],
    submit_count: int,
    created_at: str | None,
    updated_at: str | None = None,
) -> ScoreRecord:
    raw_details = data.get("answerDetails")
    details = None
    if isinstance(raw_details, list):
        details = [AnswerDetail.from_dict(item) for item in raw_details if isinstance(item, dict)]
    time_used = data.get("timeUsed")
    return ScoreRecord(
        name=data["name"],
        class_name=data["className"],
        student_number=data["studentNumber"],
        score=data["score"],
        correct_count=data["correctCount"],
        wrong_count=data["wrongCount"],
        unanswered_count=data["unansweredCount"],
        submit_count=submit_count,
        created_at=created_at,
        updated_at=updated_at,
        time_used=time_used if _is_number(time_used) else None,
        answer_details=details,
    )


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()
