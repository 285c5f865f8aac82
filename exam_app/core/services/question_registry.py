"""Service for loading, looking up and grading exam questions."""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any, Iterable

from exam_app.constants.exam_constants import QUESTION_KIND_ALL, QUESTION_KIND_CHOICE, QUESTION_KIND_JUDGE
from exam_app.core.models import AnswerCheck, ChoiceQuestion, JudgeQuestion, Question, QuestionCount
from exam_app.core.question_importer import load_question_data

logger = logging.getLogger(__name__)


class QuestionRegistry:
    """Holds the loaded question set, keyed by generated id."""

    def __init__(self) -> None:
        self._questions: dict[str, Question] = {}
        self._choice_questions: dict[str, ChoiceQuestion] = {}
        self._judge_questions: dict[str, JudgeQuestion] = {}
        self._rng = random.Random()

    def load(self, raw: Any) -> None:
        """Replace the current question set with the one described by ``raw``.

        Missing or malformed arrays count as empty and incomplete entries are
        stored as-is, so loading never fails.
        """
        self.clear()
        source = raw if isinstance(raw, dict) else {}

        for index, entry in enumerate(_as_list(source.get("choiceQuestions")), start=1):
            question = ChoiceQuestion.from_dict(_as_mapping(entry), f"{QUESTION_KIND_CHOICE}_{index}")
            self._questions[question.id] = question
            self._choice_questions[question.id] = question

        for index, entry in enumerate(_as_list(source.get("judgeQuestions")), start=1):
            question = JudgeQuestion.from_dict(_as_mapping(entry), f"{QUESTION_KIND_JUDGE}_{index}")
            self._questions[question.id] = question
            self._judge_questions[question.id] = question

    def load_file(self, file_path: Path) -> QuestionCount:
        self.load(load_question_data(file_path))
        count = self.count()
        logger.info("Loaded %d questions from %s", count.total, file_path)
        return count

    def clear(self) -> None:
        self._questions.clear()
        self._choice_questions.clear()
        self._judge_questions.clear()

    def get(self, question_id: str) -> Question | None:
        return self._questions.get(question_id)

    def all(self) -> list[Question]:
        return list(self._questions.values())

    def choice_questions(self) -> list[ChoiceQuestion]:
        return list(self._choice_questions.values())

    def judge_questions(self) -> list[JudgeQuestion]:
        return list(self._judge_questions.values())

    def count(self) -> QuestionCount:
        return QuestionCount(
            total=len(self._questions),
            choice=len(self._choice_questions),
            judge=len(self._judge_questions),
        )

    def set_seed(self, seed: int | None) -> None:
        self._rng.seed(seed)

    def sample(self, count: int, kind: str = QUESTION_KIND_ALL) -> list[Question]:
        """Return ``count`` distinct questions of the given kind in random order.

        Unknown kinds fall back to the whole set. Asking for at least the pool
        size returns a copy of the pool in load order.
        """
        if kind == QUESTION_KIND_CHOICE:
            pool: list[Question] = self.choice_questions()
        elif kind == QUESTION_KIND_JUDGE:
            pool = self.judge_questions()
        else:
            pool = self.all()

        if count <= 0:
            return []
        if count >= len(pool):
            return pool
        return self._rng.sample(pool, count)

    def validate(self, question_id: str, user_answer: Any) -> AnswerCheck:
        question = self.get(question_id)
        if question is None:
            return AnswerCheck(question_id=question_id, found=False, message="Question not found")

        matched = question.validate_answer(user_answer)
        return AnswerCheck(
            question_id=question_id,
            found=True,
            matched=matched,
            message="Correct" if matched else "Incorrect",
            correct_answer=question.get_correct_answer(),
            question=question.to_dict(),
        )

    def validate_batch(self, answers: Iterable[tuple[str, Any]]) -> list[AnswerCheck]:
        return [self.validate(question_id, user_answer) for question_id, user_answer in answers]

    def export(self) -> dict[str, list[dict[str, Any]]]:
        """Return the question set in the asset format, without generated ids."""
        return {
            "choiceQuestions": [
                {"question": q.text, "options": _copy_options(q.options), "answer": q.correct_answer}
                for q in self._choice_questions.values()
            ],
            "judgeQuestions": [
                {"question": q.text, "answer": q.correct_answer}
                for q in self._judge_questions.values()
            ],
        }


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _copy_options(options: Any) -> Any:
    return list(options) if isinstance(options, list) else options
