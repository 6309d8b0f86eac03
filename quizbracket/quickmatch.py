"""
Quick Match - free-for-all play among 2-6 players.

Every player keeps a running answer streak that feeds the scoring
multiplier: a correct answer extends it, a wrong one resets it to zero.
The player with the highest total after the last question wins.
"""
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from quizbracket.exceptions import (
    DuplicateResponseError,
    InvalidSizeError,
    MatchStateError,
    QuestionBankError,
    ScoringPreconditionError,
)
from quizbracket.models import Player, Question, Response
from quizbracket.tournament.progression import calculate_score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerState:
    """A player's running totals within one quick match."""
    player: Player
    score: int = 0
    correct_answers: int = 0
    streak: int = 0

    @property
    def id(self) -> str:
        return self.player.id


@dataclass(frozen=True)
class QuickMatch:
    """A free-for-all game."""
    players: Tuple[PlayerState, ...]
    questions: Tuple[Question, ...]
    id: str = field(default_factory=lambda: f"qm-{uuid.uuid4().hex[:12]}")
    current_question_index: int = 0
    responses: Tuple[Response, ...] = ()
    started_at: datetime = field(default_factory=datetime.now)
    ended_at: Optional[datetime] = None
    winner_id: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.ended_at is not None

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_finished or self.current_question_index >= len(self.questions):
            return None
        return self.questions[self.current_question_index]

    def get_player(self, player_id: str) -> Optional[PlayerState]:
        for state in self.players:
            if state.id == player_id:
                return state
        return None


def start_quick_match(
    players: Sequence[Player],
    questions: Sequence[Question],
    min_players: Optional[int] = None,
    max_players: Optional[int] = None,
    question_count: Optional[int] = None,
) -> QuickMatch:
    """
    Open a quick match over the first `question_count` questions.

    Player limits and question count default to the QUICKMATCH_ settings.

    Raises:
        InvalidSizeError: player count outside [min_players, max_players]
            or duplicate player ids
        QuestionBankError: no questions supplied
    """
    if min_players is None or max_players is None or question_count is None:
        from quizbracket.config import settings
        min_players = min_players or settings.quick_match.min_players
        max_players = max_players or settings.quick_match.max_players
        question_count = question_count or settings.quick_match.question_count

    if not min_players <= len(players) <= max_players:
        raise InvalidSizeError(
            detail=f"quick match needs {min_players}-{max_players} players, got {len(players)}"
        )
    ids = [p.id for p in players]
    if len(set(ids)) != len(ids):
        raise InvalidSizeError(detail="duplicate player ids")
    if not questions:
        raise QuestionBankError("Quick match needs at least one question")

    qm = QuickMatch(
        players=tuple(PlayerState(player=p) for p in players),
        questions=tuple(questions[:question_count]),
    )
    logger.info(f"Quick match {qm.id} started: {len(players)} players, {len(qm.questions)} questions")
    return qm


def answer_quick_match(
    qm: QuickMatch,
    player_id: str,
    option_index: int,
    time_bonus: int = 0,
    time_to_answer: Optional[float] = None,
) -> Tuple[QuickMatch, Response]:
    """
    Score a player's answer to the current question.

    The streak used for the multiplier is the updated one, so the first
    correct answer already earns a 1.1x multiplier.
    """
    question = qm.current_question
    if question is None:
        raise MatchStateError(f"Quick match {qm.id} has no open question")

    state = qm.get_player(player_id)
    if state is None:
        raise ScoringPreconditionError(qm.id, f"player {player_id!r} is not in this game")
    if any(r.question_id == question.id and r.player_id == player_id for r in qm.responses):
        raise DuplicateResponseError(qm.id, f"{player_id!r} already answered {question.id!r}")

    is_correct = question.is_correct(option_index)
    streak = state.streak + 1 if is_correct else 0
    points = calculate_score(is_correct, question.points, streak, time_bonus)

    updated_state = replace(
        state,
        score=state.score + points,
        correct_answers=state.correct_answers + (1 if is_correct else 0),
        streak=streak,
    )
    response = Response(
        question_id=question.id,
        player_id=player_id,
        answer=option_index,
        correct=is_correct,
        points_earned=points,
        time_to_answer=time_to_answer,
    )

    players = tuple(updated_state if s.id == player_id else s for s in qm.players)
    return replace(qm, players=players, responses=qm.responses + (response,)), response


def advance_quick_match(qm: QuickMatch) -> QuickMatch:
    """Move to the next question, finishing the game after the last one."""
    if qm.is_finished:
        raise MatchStateError(f"Quick match {qm.id} is already finished")

    next_index = qm.current_question_index + 1
    if next_index >= len(qm.questions):
        return finish_quick_match(replace(qm, current_question_index=next_index))
    return replace(qm, current_question_index=next_index)


def finish_quick_match(qm: QuickMatch) -> QuickMatch:
    """Close the game; the top scorer wins (earliest listed player on ties)."""
    if qm.is_finished:
        return qm
    winner = max(qm.players, key=lambda s: s.score)
    logger.info(f"Quick match {qm.id} won by {winner.id} with {winner.score} points")
    return replace(qm, ended_at=datetime.now(), winner_id=winner.id)


def leaderboard(qm: QuickMatch) -> List[Dict[str, Any]]:
    """Players ordered by score, highest first."""
    ranked = sorted(qm.players, key=lambda s: s.score, reverse=True)
    return [
        {
            "id": s.id,
            "name": s.player.display_name,
            "avatar": s.player.display_avatar,
            "score": s.score,
            "correct_answers": s.correct_answers,
            "streak": s.streak,
            "is_team": False,
        }
        for s in ranked
    ]
