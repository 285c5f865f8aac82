"""Reports derived from the stored score records."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Iterable

from exam_app.constants.exam_constants import PASS_SCORE
from exam_app.core.models import ScoreRecord


@dataclass(slots=True)
class ScoreSummary:
    """Headline numbers over a set of score records."""

    total_students: int
    average_score: float
    max_score: float
    min_score: float
    pass_rate: float

    def to_dict(self) -> dict[str, float]:
        return {
            "totalStudents": self.total_students,
            "averageScore": self.average_score,
            "maxScore": self.max_score,
            "minScore": self.min_score,
            "passRate": self.pass_rate,
        }


@dataclass(slots=True)
class QuestionStat:
    """How often one question was answered wrongly."""

    question_id: str
    total_answers: int
    wrong_count: int
    wrong_rate: float
    question_text: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "questionId": self.question_id,
            "question": self.question_text,
            "totalAnswers": self.total_answers,
            "wrongCount": self.wrong_count,
            "wrongRate": self.wrong_rate,
        }


@dataclass(slots=True)
class ClassStat:
    """Score summary for one class."""

    class_name: str
    summary: ScoreSummary

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"className": self.class_name}
        data.update(self.summary.to_dict())
        data["studentCount"] = data.pop("totalStudents")
        return data


def aggregate_stats(records: Iterable[ScoreRecord]) -> ScoreSummary:
    scores = [record.score for record in records]
    if not scores:
        return ScoreSummary(total_students=0, average_score=0, max_score=0, min_score=0, pass_rate=0)

    total = len(scores)
    passed = sum(1 for score in scores if score >= PASS_SCORE)
    return ScoreSummary(
        total_students=total,
        average_score=round(sum(scores) / total, 2),
        max_score=max(scores),
        min_score=min(scores),
        pass_rate=round(passed / total * 100, 2),
    )


def question_stats(
    records: Iterable[ScoreRecord],
    lookup_text: Callable[[str], str | None] | None = None,
) -> list[QuestionStat]:
    """Wrong-answer rates per question, worst first."""
    totals: dict[str, int] = defaultdict(int)
    wrong: dict[str, int] = defaultdict(int)
    for record in records:
        for detail in record.answer_details or []:
            if not detail.question_id:
                continue
            totals[detail.question_id] += 1
            if not detail.is_correct:
                wrong[detail.question_id] += 1

    stats = [
        QuestionStat(
            question_id=question_id,
            total_answers=total,
            wrong_count=wrong[question_id],
            wrong_rate=round(wrong[question_id] / total * 100, 2),
            question_text=lookup_text(question_id) if lookup_text else None,
        )
        for question_id, total in totals.items()
    ]
    stats.sort(key=lambda s: (-s.wrong_rate, s.question_id))
    return stats


def class_stats(records: Iterable[ScoreRecord]) -> list[ClassStat]:
    grouped: dict[str, list[ScoreRecord]] = defaultdict(list)
    for record in records:
        grouped[record.class_name].append(record)
    return [
        ClassStat(class_name=class_name, summary=aggregate_stats(members))
        for class_name, members in sorted(grouped.items())
    ]
