"""
Question bank loading and tournament pool drawing.

A tournament draws one shared, pre-shuffled pool sized
question_count * (size - 1). Each match then plays its own contiguous
slice of that pool (see progression.question_slice).
"""
import json
import logging
import random
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import polars as pl

from quizbracket.exceptions import QuestionBankError
from quizbracket.models import Question
from quizbracket.schema import QuestionSchemaValidator, enforce_schema
from quizbracket.tournament.builder import pool_size

logger = logging.getLogger(__name__)


CSV_OPTION_SEPARATOR = "|"


def _json_rows(payload: Union[List, Dict]) -> List[Dict[str, Any]]:
    """Flatten either a list of questions or a {subject: [questions]} mapping."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        rows = []
        for subject, questions in payload.items():
            for q in questions:
                rows.append({"subject": subject, **q})
        return rows
    raise QuestionBankError(f"Unsupported question file layout: {type(payload).__name__}")


def load_question_bank(path: Union[str, Path], default_subject: str = "math") -> pl.DataFrame:
    """
    Load a question bank from JSON, CSV or Parquet.

    Args:
        path: Question file
        default_subject: Subject for rows that do not name one

    Returns:
        DataFrame in the canonical question schema

    Raises:
        QuestionBankError: file missing, unreadable or failing validation
    """
    path = Path(path)
    if not path.exists():
        raise QuestionBankError(f"Question bank not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".parquet":
        df = pl.read_parquet(path)
    elif suffix == ".csv":
        df = pl.read_csv(path)
        if "options" in df.columns and df.schema["options"] == pl.String:
            df = df.with_columns(pl.col("options").str.split(CSV_OPTION_SEPARATOR))
    elif suffix == ".json":
        with open(path, "r", encoding="utf-8") as f:
            rows = _json_rows(json.load(f))
        if not rows:
            raise QuestionBankError(f"Question bank is empty: {path}")
        df = pl.DataFrame(rows, infer_schema_length=None)
    else:
        raise QuestionBankError(f"Unsupported question bank format: {suffix}")

    df = prepare_question_bank(df, default_subject)
    logger.info(f"Loaded {len(df):,} questions from {path}")
    return df


def prepare_question_bank(df: pl.DataFrame, default_subject: str = "math") -> pl.DataFrame:
    """Enforce the schema and reject tables that cannot be played."""
    df = enforce_schema(df, default_subject)
    validator = QuestionSchemaValidator(strict=True)
    result = validator.validate(df)
    if not result.valid:
        for error in result.errors:
            logger.error(f"[SCHEMA ERROR] {error}")
        raise QuestionBankError("; ".join(result.errors))
    for warning in result.warnings:
        logger.warning(f"[SCHEMA WARN] {warning}")
    return df


def filter_questions(
    df: pl.DataFrame,
    subject: str,
    grade_level: int,
    grade_tolerance: int = 1
) -> pl.DataFrame:
    """Questions for a subject within grade_tolerance of the target grade."""
    return df.filter(
        (pl.col("subject").str.to_lowercase() == subject.lower()) &
        ((pl.col("grade_level") - grade_level).abs() <= grade_tolerance)
    )


def rows_to_questions(df: pl.DataFrame) -> List[Question]:
    questions = []
    for row in df.iter_rows(named=True):
        questions.append(Question(
            id=str(row["id"]),
            text=row["text"],
            options=tuple(row["options"]),
            correct_answer=int(row["correct_answer"]),
            subject=row.get("subject") or "",
            grade_level=int(row.get("grade_level") or 0),
            points=int(row.get("points") or 0),
            time_limit=row.get("time_limit"),
        ))
    return questions


def draw_question_pool(
    bank: pl.DataFrame,
    size: int,
    question_count: int,
    subject: str,
    grade_level: int,
    grade_tolerance: int = 1,
    fallback_subject: Optional[str] = "math",
    seed: Optional[int] = None,
) -> List[Question]:
    """
    Draw the shared tournament pool.

    Filters the bank to the subject and grade band, shuffles it and keeps
    exactly one slice per match. When a subject has no questions at all
    the fallback subject is used instead.

    Raises:
        QuestionBankError: fewer eligible questions than the bracket needs
    """
    needed = pool_size(size, question_count)
    eligible = filter_questions(bank, subject, grade_level, grade_tolerance)

    if eligible.height == 0 and fallback_subject and fallback_subject.lower() != subject.lower():
        logger.warning(f"No {subject!r} questions near grade {grade_level}; using {fallback_subject!r}")
        eligible = filter_questions(bank, fallback_subject, grade_level, grade_tolerance)

    if eligible.height < needed:
        raise QuestionBankError(
            f"Need {needed} questions for a {size}-participant bracket "
            f"({question_count} per match), only {eligible.height} available"
        )

    shuffled = eligible.sample(fraction=1.0, shuffle=True, seed=seed)
    pool = rows_to_questions(shuffled.head(needed))
    logger.info(f"Drew {len(pool)} questions ({subject}, grade {grade_level}±{grade_tolerance})")
    return pool


def generate_practice_questions(
    count: int,
    subject: str = "math",
    grade_level: int = 3,
    points: int = 100,
    seed: Optional[int] = None,
) -> pl.DataFrame:
    """
    Generate an arithmetic question bank.

    Used when no bank file is configured, so a bracket can always be
    simulated end to end.
    """
    rng = random.Random(seed)
    top = 10 * max(1, grade_level)
    rows = []

    for i in range(count):
        a, b = rng.randint(1, top), rng.randint(1, top)
        answer = a + b
        distractors = set()
        while len(distractors) < 3:
            candidate = answer + rng.choice([-3, -2, -1, 1, 2, 3, 10, -10])
            if candidate != answer and candidate >= 0:
                distractors.add(candidate)
        options = [answer] + sorted(distractors)
        rng.shuffle(options)
        rows.append({
            "id": f"gen-{i + 1}",
            "text": f"What is {a} + {b}?",
            "options": [str(o) for o in options],
            "correct_answer": options.index(answer),
            "subject": subject,
            "grade_level": grade_level,
            "points": points,
        })

    return enforce_schema(pl.DataFrame(rows), subject)
