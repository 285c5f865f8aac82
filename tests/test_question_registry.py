import json

import pytest

from exam_app.core.models import ChoiceQuestion, JudgeQuestion
from exam_app.core.question_importer import QuestionImportError
from exam_app.core.services.question_registry import QuestionRegistry


def test_load_assigns_ids_per_kind(registry):
    ids = [q.id for q in registry.all()]

    assert ids == ["choice_1", "choice_2", "judge_1", "judge_2"]
    assert isinstance(registry.get("choice_2"), ChoiceQuestion)
    assert isinstance(registry.get("judge_1"), JudgeQuestion)
    assert registry.get("choice_1").options == ["A. one", "B. two", "C. three"]


def test_count_adds_up_and_kinds_are_disjoint(registry):
    count = registry.count()

    assert (count.total, count.choice, count.judge) == (4, 2, 2)
    assert count.total == count.choice + count.judge
    choice_ids = {q.id for q in registry.choice_questions()}
    judge_ids = {q.id for q in registry.judge_questions()}
    assert not choice_ids & judge_ids


def test_get_unknown_id_returns_none(registry):
    assert registry.get("choice_99") is None


@pytest.mark.parametrize(
    "raw",
    [{}, None, [], {"choiceQuestions": "nope"}, {"judgeQuestions": None}, {"choiceQuestions": []}],
)
def test_load_tolerates_missing_arrays(raw):
    registry = QuestionRegistry()
    registry.load(raw)

    assert registry.count().total == 0


def test_load_keeps_incomplete_entries():
    registry = QuestionRegistry()
    registry.load(
        {
            "choiceQuestions": [{"options": ["A. x"], "answer": "A"}, {"question": "No options"}, "junk"],
            "judgeQuestions": [{"answer": True}, {"question": "No answer"}],
        }
    )

    assert registry.count().total == 5
    assert registry.get("choice_1").text is None
    assert registry.get("choice_2").options is None
    assert registry.get("choice_3").correct_answer is None
    assert registry.get("judge_2").correct_answer is None
    assert registry.validate("choice_3", "A").matched is False


def test_reload_replaces_previous_questions():
    registry = QuestionRegistry()
    registry.load({"choiceQuestions": [{"question": "First", "options": ["A. a"], "answer": "A"}]})
    registry.load({"choiceQuestions": [{"question": "Second", "options": ["A. a"], "answer": "A"}]})

    assert registry.get("choice_1").text == "Second"
    assert registry.count().total == 1


def test_scenario_single_choice_question():
    registry = QuestionRegistry()
    registry.load({"choiceQuestions": [{"question": "Q1", "options": ["A. x", "B. y"], "answer": "B"}]})

    question = registry.get("choice_1")
    assert question.validate_answer("b") is True
    assert question.validate_answer("A") is False


def test_sample_edge_sizes(registry):
    assert registry.sample(0) == []
    assert registry.sample(-1) == []
    assert [q.id for q in registry.sample(10)] == ["choice_1", "choice_2", "judge_1", "judge_2"]
    assert [q.id for q in registry.sample(2, "judge")] == ["judge_1", "judge_2"]


def test_sample_returns_distinct_members_of_pool():
    registry = QuestionRegistry()
    registry.load(
        {
            "choiceQuestions": [{"question": f"C{i}", "options": ["A. a"], "answer": "A"} for i in range(10)],
            "judgeQuestions": [{"question": f"J{i}", "answer": True} for i in range(5)],
        }
    )
    registry.set_seed(7)

    picked = registry.sample(4, "choice")
    assert len(picked) == 4
    assert len({q.id for q in picked}) == 4
    assert all(q.id.startswith("choice_") for q in picked)

    mixed = registry.sample(3, "invalid_type")
    assert len(mixed) == 3


def test_sample_full_pool_is_a_copy(registry):
    pool = registry.sample(100)
    pool.clear()

    assert registry.count().total == 4


def test_validate_reports_outcome(registry):
    hit = registry.validate("choice_1", "a")
    miss = registry.validate("judge_1", "true")
    unknown = registry.validate("missing", "A")

    assert hit.found and hit.matched
    assert hit.correct_answer == "A"
    assert hit.question["id"] == "choice_1"
    assert miss.found and not miss.matched
    assert not unknown.found and not unknown.matched
    assert unknown.message == "Question not found"


def test_validate_batch_preserves_order(registry):
    results = registry.validate_batch([("judge_2", False), ("nope", 1), ("choice_2", "B")])

    assert [r.question_id for r in results] == ["judge_2", "nope", "choice_2"]
    assert [r.matched for r in results] == [True, False, True]
    assert results[1].to_dict()["success"] is False


def test_export_round_trips(registry, question_data):
    assert registry.export() == question_data

    other = QuestionRegistry()
    other.load(registry.export())
    assert [q.to_dict() for q in other.all()] == [q.to_dict() for q in registry.all()]


def test_load_file(tmp_path, question_data):
    path = tmp_path / "questions.json"
    path.write_text(json.dumps(question_data), encoding="utf-8")
    registry = QuestionRegistry()

    count = registry.load_file(path)

    assert count.total == 4


def test_load_file_errors(tmp_path):
    registry = QuestionRegistry()
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")

    with pytest.raises(QuestionImportError):
        registry.load_file(bad)
    with pytest.raises(QuestionImportError):
        registry.load_file(tmp_path / "missing.json")

    array_doc = tmp_path / "array.json"
    array_doc.write_text("[1, 2]", encoding="utf-8")
    assert registry.load_file(array_doc).total == 0


def test_bundled_question_asset_loads():
    from exam_app.constants.exam_constants import QUESTIONS_FILE

    registry = QuestionRegistry()
    count = registry.load_file(QUESTIONS_FILE)

    assert count.choice > 0 and count.judge > 0
    for question in registry.choice_questions():
        letters = [option.split(".")[0] for option in question.options]
        assert question.correct_answer in letters


def test_export_and_load_do_not_share_option_lists(question_data):
    reg = QuestionRegistry()
    reg.load(question_data)
    question_data["choiceQuestions"][0]["options"].append("D. four")

    exported = reg.export()
    exported["choiceQuestions"][0]["options"].clear()

    assert reg.get("choice_1").options == ["A. one", "B. two", "C. three"]
    assert reg.export()["choiceQuestions"][0]["options"] == ["A. one", "B. two", "C. three"]
