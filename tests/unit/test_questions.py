"""
Unit tests for question bank loading and pool drawing.
"""
import json
import re

import polars as pl
import pytest

from quizbracket.exceptions import QuestionBankError
from quizbracket.models import Question
from quizbracket.tournament.questions import (
    draw_question_pool,
    filter_questions,
    generate_practice_questions,
    load_question_bank,
    prepare_question_bank,
    rows_to_questions,
)


@pytest.fixture
def bank(sample_question_rows):
    return prepare_question_bank(pl.DataFrame(sample_question_rows))


class TestLoadQuestionBank:
    """Tests for reading bank files."""

    def test_json_list(self, tmp_path, sample_question_rows):
        path = tmp_path / "bank.json"
        path.write_text(json.dumps(sample_question_rows), encoding="utf-8")

        df = load_question_bank(path)
        assert len(df) == 5
        assert df["correct_answer"].to_list() == [1, 1, 0, 1, 1]

    def test_json_by_subject(self, tmp_path, sample_question_rows):
        """A {subject: [...]} file tags every row with its subject."""
        path = tmp_path / "bank.json"
        path.write_text(json.dumps({
            "math": sample_question_rows[:3],
            "science": [{
                "id": "s1",
                "text": "Water boils at?",
                "options": ["50C", "100C"],
                "correctAnswer": 1,
                "gradeLevel": 3,
            }],
        }), encoding="utf-8")

        df = load_question_bank(path)
        assert df.filter(pl.col("subject") == "science")["id"].to_list() == ["s1"]
        assert df.filter(pl.col("subject") == "math").height == 3

    def test_csv_options_split(self, tmp_path):
        path = tmp_path / "bank.csv"
        path.write_text(
            "id,text,options,correct_answer,grade_level\n"
            "c1,1 + 1?,1|2|3,1,1\n"
            "c2,2 + 2?,4|5|6,0,1\n",
            encoding="utf-8",
        )

        df = load_question_bank(path)
        assert df["options"].to_list() == [["1", "2", "3"], ["4", "5", "6"]]
        assert df["subject"].to_list() == ["math", "math"]

    def test_parquet(self, tmp_path, bank):
        path = tmp_path / "bank.parquet"
        bank.write_parquet(path)
        assert load_question_bank(path).height == bank.height

    def test_missing_file(self, tmp_path):
        with pytest.raises(QuestionBankError):
            load_question_bank(tmp_path / "nope.json")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "bank.txt"
        path.write_text("hello", encoding="utf-8")
        with pytest.raises(QuestionBankError):
            load_question_bank(path)

    def test_empty_json(self, tmp_path):
        path = tmp_path / "bank.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(QuestionBankError):
            load_question_bank(path)

    def test_invalid_rows_rejected(self, tmp_path, sample_question_rows):
        rows = [dict(r, correctAnswer=7) for r in sample_question_rows]
        path = tmp_path / "bank.json"
        path.write_text(json.dumps(rows), encoding="utf-8")
        with pytest.raises(QuestionBankError):
            load_question_bank(path)


class TestFilterQuestions:

    def test_grade_band(self, bank):
        """Grade 3 with tolerance 1 keeps grades 2-4."""
        df = filter_questions(bank, "math", 3, 1)
        assert sorted(df["id"].to_list()) == ["m1", "m2", "m3", "m4"]

    def test_exact_grade(self, bank):
        df = filter_questions(bank, "math", 3, 0)
        assert sorted(df["id"].to_list()) == ["m2", "m3"]

    def test_subject_case_insensitive(self, bank):
        assert filter_questions(bank, "MATH", 6, 0)["id"].to_list() == ["m5"]

    def test_other_subject(self, bank):
        assert filter_questions(bank, "history", 3, 1).height == 0


class TestDrawQuestionPool:
    """Tests for building the shared tournament pool."""

    def test_pool_sized_for_bracket(self, bank):
        pool = draw_question_pool(bank, size=4, question_count=1, subject="math", grade_level=3)
        assert len(pool) == 3
        assert all(isinstance(q, Question) for q in pool)
        assert len({q.id for q in pool}) == 3
        assert {q.id for q in pool} <= {"m1", "m2", "m3", "m4"}

    def test_seed_is_reproducible(self, bank):
        a = draw_question_pool(bank, 4, 1, "math", 3, seed=11)
        b = draw_question_pool(bank, 4, 1, "math", 3, seed=11)
        assert [q.id for q in a] == [q.id for q in b]

    def test_falls_back_to_default_subject(self, bank):
        pool = draw_question_pool(bank, 4, 1, "science", 3, fallback_subject="math")
        assert all(q.subject == "math" for q in pool)

    def test_no_fallback(self, bank):
        with pytest.raises(QuestionBankError):
            draw_question_pool(bank, 4, 1, "science", 3, fallback_subject=None)

    def test_too_few_questions(self, bank):
        with pytest.raises(QuestionBankError) as exc:
            draw_question_pool(bank, size=8, question_count=1, subject="math", grade_level=3)
        assert "7" in str(exc.value)


class TestRowsToQuestions:

    def test_conversion(self, bank):
        questions = rows_to_questions(bank.filter(pl.col("id") == "m3"))
        assert len(questions) == 1
        q = questions[0]
        assert q.options == ("6", "5", "4", "7")
        assert q.correct_answer == 0
        assert q.points == 150
        assert q.grade_level == 3
        assert q.is_correct(0)


class TestGeneratePracticeQuestions:

    def test_count_and_ids(self):
        df = generate_practice_questions(12, seed=3)
        assert df.height == 12
        assert df["id"].to_list() == [f"gen-{i}" for i in range(1, 13)]

    def test_answers_are_correct(self):
        df = generate_practice_questions(20, grade_level=2, seed=5)
        for q in rows_to_questions(df):
            a, b = map(int, re.findall(r"\d+", q.text))
            assert int(q.options[q.correct_answer]) == a + b
            assert len(set(q.options)) == 4

    def test_passes_validation(self):
        df = generate_practice_questions(10, subject="math", seed=1)
        assert prepare_question_bank(df).height == 10

    def test_seeded(self):
        a = generate_practice_questions(5, seed=9)
        b = generate_practice_questions(5, seed=9)
        assert a.equals(b)
