"""
Question bank schema.

Defines the canonical columns of a question table and validates
DataFrames against them before questions are drawn into a tournament.
"""
import polars as pl
from typing import List
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# CORE SCHEMA DEFINITION
# =============================================================================

# Required columns for every question
CORE_COLUMNS = {
    "id": pl.String,
    "text": pl.String,
    "options": pl.List(pl.String),
    "correct_answer": pl.Int64,
}

# Classification columns (filled with defaults when missing)
METADATA_COLUMNS = {
    "subject": pl.String,
    "grade_level": pl.Int64,
    "points": pl.Int64,
    "time_limit": pl.Int64,
}

QUESTION_COLUMNS = {
    **CORE_COLUMNS,
    **METADATA_COLUMNS,
}

# Field names used by the browser app's question files
CAMEL_CASE_ALIASES = {
    "correctAnswer": "correct_answer",
    "gradeLevel": "grade_level",
    "timeLimit": "time_limit",
    "question": "text",
}

DEFAULT_POINTS = 100
MIN_OPTIONS = 2


# =============================================================================
# SCHEMA VALIDATOR
# =============================================================================

@dataclass
class ValidationResult:
    """Result of schema validation."""
    valid: bool
    errors: List[str]
    warnings: List[str]


class QuestionSchemaValidator:
    """Validates question DataFrames against the canonical schema."""

    def __init__(self, strict: bool = True):
        """
        Args:
            strict: If True, any error makes the table invalid
        """
        self.strict = strict

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        errors = []
        warnings = []

        missing = [col for col in CORE_COLUMNS if col not in df.columns]
        for col in missing:
            errors.append(f"Missing required column: {col}")
        if missing:
            return ValidationResult(valid=not self.strict, errors=errors, warnings=warnings)

        # Duplicate ids would let one question be answered twice
        n_dupes = len(df) - df["id"].n_unique()
        if n_dupes > 0:
            errors.append(f"Found {n_dupes} duplicate question ids")

        n_few_options = df.filter(
            pl.col("options").is_null() | (pl.col("options").list.len() < MIN_OPTIONS)
        ).height
        if n_few_options > 0:
            errors.append(f"{n_few_options} questions have fewer than {MIN_OPTIONS} options")

        n_bad_answer = df.filter(
            pl.col("correct_answer").is_null()
            | (pl.col("correct_answer") < 0)
            | (pl.col("correct_answer") >= pl.col("options").list.len())
        ).height
        if n_bad_answer > 0:
            errors.append(f"{n_bad_answer} questions have a correct_answer outside their options")

        if "points" in df.columns:
            n_no_points = df.filter(pl.col("points") <= 0).height
            if n_no_points > 0:
                warnings.append(f"{n_no_points} questions award no points")

        valid = len(errors) == 0 if self.strict else True

        return ValidationResult(valid=valid, errors=errors, warnings=warnings)

    def validate_and_log(self, df: pl.DataFrame) -> bool:
        """Validate and log results."""
        result = self.validate(df)

        for error in result.errors:
            logger.error(f"[SCHEMA ERROR] {error}")

        for warning in result.warnings:
            logger.warning(f"[SCHEMA WARN] {warning}")

        if result.valid:
            logger.info(f"[SCHEMA] Validation passed ({len(df)} questions)")

        return result.valid


# =============================================================================
# SCHEMA ENFORCEMENT
# =============================================================================

def enforce_schema(df: pl.DataFrame, default_subject: str = "math") -> pl.DataFrame:
    """
    Bring a raw question table to the canonical schema.

    Renames camelCase columns, adds missing metadata columns with
    defaults and casts everything to the declared dtypes.
    """
    renames = {
        old: new for old, new in CAMEL_CASE_ALIASES.items()
        if old in df.columns and new not in df.columns
    }
    if renames:
        df = df.rename(renames)

    defaults = {
        "subject": pl.lit(default_subject),
        "grade_level": pl.lit(1),
        "points": pl.lit(DEFAULT_POINTS),
        "time_limit": pl.lit(None),
    }
    for col, expr in defaults.items():
        if col not in df.columns:
            df = df.with_columns(expr.cast(METADATA_COLUMNS[col]).alias(col))

    if "points" in df.columns:
        df = df.with_columns(pl.col("points").fill_null(DEFAULT_POINTS))

    for col, dtype in QUESTION_COLUMNS.items():
        if col in df.columns and df.schema[col] != dtype:
            df = df.with_columns(pl.col(col).cast(dtype))

    present = [col for col in QUESTION_COLUMNS if col in df.columns]
    return df.select(present)
