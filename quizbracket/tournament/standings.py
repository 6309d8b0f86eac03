"""
Tournament standings and result summaries.

Aggregates every recorded response and match result of a bracket into a
per-participant table, and packages a finished tournament for the
persistence layer.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import polars as pl

from quizbracket.models import Bracket, Participant, ROUND_ORDER, is_team

logger = logging.getLogger(__name__)


RESPONSE_SCHEMA = {
    "match_id": pl.String,
    "participant_id": pl.String,
    "correct": pl.Boolean,
    "points_earned": pl.Int64,
}

RESULT_SCHEMA = {
    "match_id": pl.String,
    "round_num": pl.Int64,
    "participant_id": pl.String,
    "won": pl.Boolean,
}


def responses_frame(bracket: Bracket) -> pl.DataFrame:
    """One row per recorded response."""
    rows = []
    for match in bracket.all_matches:
        for response in match.responses:
            rows.append({
                "match_id": match.id,
                "participant_id": response.respondent_id,
                "correct": response.correct,
                "points_earned": response.points_earned,
            })
    return pl.DataFrame(rows, schema=RESPONSE_SCHEMA)


def results_frame(bracket: Bracket) -> pl.DataFrame:
    """One row per participant per completed match."""
    rows = []
    for match in bracket.all_matches:
        if not match.completed:
            continue
        for pid in match.participant_ids:
            rows.append({
                "match_id": match.id,
                "round_num": ROUND_ORDER.index(match.round) + 1,
                "participant_id": pid,
                "won": pid == match.winner_id,
            })
    return pl.DataFrame(rows, schema=RESULT_SCHEMA)


def compute_standings(bracket: Bracket, participants: Sequence[Participant]) -> pl.DataFrame:
    """
    Per-participant totals across the whole bracket.

    Columns: participant_id, name, is_team, points, correct_answers,
    answered, matches_played, matches_won, furthest_round, is_champion.
    Sorted by points, then matches won (both descending).
    """
    base = pl.DataFrame({
        "participant_id": [p.id for p in participants],
        "name": [p.display_name for p in participants],
        "is_team": [is_team(p) for p in participants],
    }, schema={"participant_id": pl.String, "name": pl.String, "is_team": pl.Boolean})

    answer_stats = (
        responses_frame(bracket)
        .group_by("participant_id")
        .agg([
            pl.col("points_earned").sum().alias("points"),
            pl.col("correct").sum().cast(pl.Int64).alias("correct_answers"),
            pl.len().cast(pl.Int64).alias("answered"),
        ])
    )

    match_stats = (
        results_frame(bracket)
        .group_by("participant_id")
        .agg([
            pl.len().cast(pl.Int64).alias("matches_played"),
            pl.col("won").sum().cast(pl.Int64).alias("matches_won"),
            pl.col("round_num").max().alias("furthest_round_num"),
        ])
    )

    standings = (
        base
        .join(answer_stats, on="participant_id", how="left")
        .join(match_stats, on="participant_id", how="left")
        .with_columns([
            pl.col("points").fill_null(0),
            pl.col("correct_answers").fill_null(0),
            pl.col("answered").fill_null(0),
            pl.col("matches_played").fill_null(0),
            pl.col("matches_won").fill_null(0),
            (pl.col("participant_id") == pl.lit(bracket.champion or "")).alias("is_champion"),
        ])
        .with_columns(
            pl.col("furthest_round_num")
            .replace_strict(
                {i + 1: r.value for i, r in enumerate(ROUND_ORDER)},
                default=None,
                return_dtype=pl.String,
            )
            .alias("furthest_round")
        )
        .drop("furthest_round_num")
        .sort(["points", "matches_won"], descending=[True, True], maintain_order=True)
    )

    return standings


def build_summary(
    bracket: Bracket,
    participants: Sequence[Participant],
    name: str = "",
    subject: str = "",
    grade_level: Optional[int] = None,
    started_at: Optional[datetime] = None,
    ended_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Package a tournament for archival.

    Contains the bracket, final standings and every response record.
    """
    by_id = {p.id: p for p in participants}
    champion = by_id.get(bracket.champion) if bracket.champion else None
    standings = compute_standings(bracket, participants)

    duration_minutes = None
    if started_at and ended_at:
        duration_minutes = round((ended_at - started_at).total_seconds() / 60, 1)

    summary = {
        "game_type": "tournament",
        "name": name,
        "subject": subject,
        "grade_level": grade_level,
        "size": bracket.size,
        "participant_type": "team" if any(is_team(p) for p in participants) else "individual",
        "participants": [p.to_dict() for p in participants],
        "champion": {
            "id": champion.id,
            "name": champion.display_name,
            "final_score": bracket.finals.score_of(champion.id),
        } if champion else None,
        "standings": standings.to_dicts(),
        "bracket": bracket.to_dict(),
        "responses": [r.to_dict() for r in bracket.all_responses],
        "started_at": started_at.isoformat() if started_at else None,
        "ended_at": ended_at.isoformat() if ended_at else None,
        "duration_minutes": duration_minutes,
    }
    return summary


def standings_from_summary(summary: Dict[str, Any]) -> pl.DataFrame:
    """Rebuild the standings table from an archived summary."""
    rows: List[Dict[str, Any]] = summary.get("standings") or []
    if not rows:
        return pl.DataFrame()
    return pl.DataFrame(rows)
