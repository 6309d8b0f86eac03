"""
Tournament Mode - Single-Elimination Quiz Brackets.

Seeds brackets of 4, 8 or 16 players or teams, routes questions and
answers to the match in play, advances winners round by round and
crowns a champion.
"""
from .builder import build_bracket, SUPPORTED_SIZES, pool_size
from .progression import (
    calculate_score,
    calculate_time_bonus,
    record_response,
    record_timeout,
    complete_match,
    advance_winner,
    next_match,
    next_slot,
    replace_match,
    question_slice,
    current_question,
)
from .questions import load_question_bank, draw_question_pool, generate_practice_questions
from .session import TournamentSession, AnswerResult
from .standings import compute_standings, build_summary

__all__ = [
    "build_bracket",
    "SUPPORTED_SIZES",
    "pool_size",
    "calculate_score",
    "calculate_time_bonus",
    "record_response",
    "record_timeout",
    "complete_match",
    "advance_winner",
    "next_match",
    "next_slot",
    "replace_match",
    "question_slice",
    "current_question",
    "load_question_bank",
    "draw_question_pool",
    "generate_practice_questions",
    "TournamentSession",
    "AnswerResult",
    "compute_standings",
    "build_summary",
]
