"""Domain models for the exam server."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from exam_app.constants.exam_constants import QUESTION_KIND_CHOICE, QUESTION_KIND_JUDGE


@dataclass(frozen=True, slots=True)
class Question:
    """Common identity shared by every question kind."""

    kind: ClassVar[str] = ""

    id: str
    text: str | None

    def validate_answer(self, user_answer: Any) -> bool:
        raise NotImplementedError("Question subclasses must implement validate_answer().")

    def get_correct_answer(self) -> Any:
        raise NotImplementedError("Question subclasses must implement get_correct_answer().")

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "question": self.text, "type": self.kind}


@dataclass(frozen=True, slots=True)
class ChoiceQuestion(Question):
    """Multiple-choice question graded by a case-insensitive letter match."""

    kind: ClassVar[str] = QUESTION_KIND_CHOICE

    options: list[str] | None = None
    correct_answer: str | None = None

    def validate_answer(self, user_answer: Any) -> bool:
        if not isinstance(user_answer, str) or not isinstance(self.correct_answer, str):
            return False
        return user_answer.upper() == self.correct_answer.upper()

    def get_correct_answer(self) -> str | None:
        return self.correct_answer

    def to_dict(self) -> dict[str, Any]:
        info = Question.to_dict(self)
        info["options"] = self.options
        info["correctAnswer"] = self.correct_answer
        return info

    @classmethod
    def from_dict(cls, data: dict[str, Any], question_id: str) -> "ChoiceQuestion":
        options = data.get("options")
        return cls(
            id=question_id,
            text=data.get("question"),
            options=list(options) if isinstance(options, list) else options,
            correct_answer=data.get("answer"),
        )


@dataclass(frozen=True, slots=True)
class JudgeQuestion(Question):
    """True/false question graded by strict boolean identity."""

    kind: ClassVar[str] = QUESTION_KIND_JUDGE

    correct_answer: bool | None = None

    def validate_answer(self, user_answer: Any) -> bool:
        # 1, 0 and "true" must not pass for booleans.
        if not isinstance(user_answer, bool) or not isinstance(self.correct_answer, bool):
            return False
        return user_answer is self.correct_answer

    def get_correct_answer(self) -> bool | None:
        return self.correct_answer

    def to_dict(self) -> dict[str, Any]:
        info = Question.to_dict(self)
        info["correctAnswer"] = self.correct_answer
        return info

    @classmethod
    def from_dict(cls, data: dict[str, Any], question_id: str) -> "JudgeQuestion":
        return cls(id=question_id, text=data.get("question"), correct_answer=data.get("answer"))


@dataclass(frozen=True, slots=True)
class QuestionCount:
    total: int
    choice: int
    judge: int

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "choice": self.choice, "judge": self.judge}


@dataclass(slots=True)
class AnswerCheck:
    """Outcome of grading one answer against the registry."""

    question_id: str
    found: bool
    matched: bool = False
    message: str = ""
    correct_answer: Any = None
    question: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "questionId": self.question_id,
            "success": self.found,
            "isCorrect": self.matched,
            "message": self.message,
        }
        if self.found:
            result["correctAnswer"] = self.correct_answer
            result["questionInfo"] = self.question
        return result


@dataclass(slots=True)
class AnswerDetail:
    """Per-question correctness stored with a score record for reporting."""

    question_id: str
    user_answer: Any = None
    correct_answer: Any = None
    is_correct: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "questionId": self.question_id,
            "userAnswer": self.user_answer,
            "correctAnswer": self.correct_answer,
            "isCorrect": self.is_correct,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnswerDetail":
        return cls(
            question_id=str(data.get("questionId", "")),
            user_answer=data.get("userAnswer"),
            correct_answer=data.get("correctAnswer"),
            is_correct=data.get("isCorrect") is True,
        )


@dataclass(slots=True)
class ScoreRecord:
    """One student's stored submission, keyed by student number."""

    name: str
    class_name: str
    student_number: str
    score: float
    correct_count: float = 0
    wrong_count: float = 0
    unanswered_count: float = 0
    submit_count: int = 1
    created_at: str | None = None
    updated_at: str | None = None
    time_used: float | None = None
    answer_details: list[AnswerDetail] | None = field(default=None)

    def to_dict(self, include_details: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "className": self.class_name,
            "studentNumber": self.student_number,
            "score": self.score,
            "correctCount": self.correct_count,
            "wrongCount": self.wrong_count,
            "unansweredCount": self.unanswered_count,
            "submitCount": self.submit_count,
            "createdAt": self.created_at,
        }
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        if self.time_used is not None:
            data["timeUsed"] = self.time_used
        if include_details and self.answer_details is not None:
            data["answerDetails"] = [detail.to_dict() for detail in self.answer_details]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScoreRecord":
        """Build a record from its stored form, tolerating older or partial entries."""
        raw_details = data.get("answerDetails")
        details = None
        if isinstance(raw_details, list):
            details = [AnswerDetail.from_dict(item) for item in raw_details if isinstance(item, dict)]
        submit_count = data.get("submitCount")
        if not isinstance(submit_count, int) or isinstance(submit_count, bool) or submit_count < 1:
            submit_count = 1
        return cls(
            name=data.get("name", ""),
            class_name=data.get("className", ""),
            student_number=data.get("studentNumber", ""),
            score=data.get("score", 0),
            correct_count=data.get("correctCount", 0),
            wrong_count=data.get("wrongCount", 0),
            unanswered_count=data.get("unansweredCount", 0),
            submit_count=submit_count,
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            time_used=data.get("timeUsed"),
            answer_details=details,
        )
