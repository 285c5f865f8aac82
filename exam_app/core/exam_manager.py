"""Business logic shared by the HTTP layer and the process bootstrap."""

from __future__ import annotations

from pathlib import Path
from threading import Lock
from typing import Any

from exam_app.constants.exam_constants import (
    BACKUP_FILE_NAME,
    DATA_DIR,
    QUESTION_KIND_ALL,
    QUESTIONS_FILE,
    SCORES_FILE_NAME,
    WRITE_TIMEOUT_SECONDS,
)
from exam_app.core.models import AnswerCheck, Question, QuestionCount, ScoreRecord
from exam_app.core.services.question_registry import QuestionRegistry
from exam_app.core.services.score_analysis import (
    ClassStat,
    QuestionStat,
    ScoreSummary,
    aggregate_stats,
    class_stats,
    question_stats,
)
from exam_app.core.services.score_store import ScoreStore, SubmissionResult


class ExamManager:
    """Facade for exam services: QuestionRegistry, ScoreStore and the reports."""

    def __init__(
        self,
        questions_file: Path = QUESTIONS_FILE,
        scores_file: Path | None = None,
        backup_file: Path | None = None,
        write_timeout: float | None = WRITE_TIMEOUT_SECONDS,
    ) -> None:
        # Guards the registry; the score store serializes its own writers.
        self._lock = Lock()
        self._questions_file = Path(questions_file)
        self._registry = QuestionRegistry()
        self._store = ScoreStore(
            scores_path=scores_file if scores_file is not None else DATA_DIR / SCORES_FILE_NAME,
            backup_path=backup_file if backup_file is not None else DATA_DIR / BACKUP_FILE_NAME,
            write_timeout=write_timeout,
        )

    # --- Question Registry Delegation ---

    def load_questions(self, raw: Any) -> QuestionCount:
        with self._lock:
            self._registry.load(raw)
            return self._registry.count()

    def reload_questions(self) -> QuestionCount:
        """Rebuild the registry from the configured question file."""
        with self._lock:
            return self._registry.load_file(self._questions_file)

    def get_question_asset(self) -> dict[str, list[dict[str, Any]]]:
        with self._lock:
            return self._registry.export()

    def get_question(self, question_id: str) -> Question | None:
        with self._lock:
            return self._registry.get(question_id)

    def get_question_count(self) -> QuestionCount:
        with self._lock:
            return self._registry.count()

    def sample_questions(self, count: int, kind: str = QUESTION_KIND_ALL) -> list[Question]:
        with self._lock:
            return self._registry.sample(count, kind)

    def set_shuffle_seed(self, seed: int | None) -> None:
        with self._lock:
            self._registry.set_seed(seed)

    def check_answer(self, question_id: str, user_answer: Any) -> AnswerCheck:
        with self._lock:
            return self._registry.validate(question_id, user_answer)

    def check_answers(self, answers: list[tuple[str, Any]]) -> list[AnswerCheck]:
        with self._lock:
            return self._registry.validate_batch(answers)

    # --- Score Store Delegation ---

    def prepare_storage(self) -> None:
        self._store.ensure_initialized()

    def submit_score(self, payload: dict[str, Any]) -> SubmissionResult:
        """Store a submission, grading raw ``answers`` when no details were sent."""
        data = dict(payload)
        answers = data.pop("answers", None)
        if "answerDetails" not in data and isinstance(answers, list):
            pairs = [
                (str(item.get("questionId", "")), item.get("userAnswer"))
                for item in answers
                if isinstance(item, dict)
            ]
            data["answerDetails"] = [
                {
                    "questionId": check.question_id,
                    "userAnswer": user_answer,
                    "correctAnswer": check.correct_answer,
                    "isCorrect": check.matched,
                }
                for check, (_, user_answer) in zip(self.check_answers(pairs), pairs)
            ]
        return self._store.submit(data)

    def list_scores(self) -> list[ScoreRecord]:
        return self._store.list_all()

    def get_score(self, student_number: str) -> ScoreRecord | None:
        return self._store.get(student_number)

    def delete_score(self, student_number: str) -> bool:
        return self._store.delete_one(student_number)

    def clear_scores(self) -> int:
        return self._store.delete_all()

    # --- Reports ---

    def get_stats(self) -> ScoreSummary:
        return aggregate_stats(self._store.list_all())

    def get_question_stats(self) -> list[QuestionStat]:
        return question_stats(self._store.list_all(), lookup_text=self._lookup_question_text)

    def get_class_stats(self) -> list[ClassStat]:
        return class_stats(self._store.list_all())

    def _lookup_question_text(self, question_id: str) -> str | None:
        question = self.get_question(question_id)
        return question.text if question is not None else None
