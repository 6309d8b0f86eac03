"""
Match Progression Engine.

Pure state transitions over Match and Bracket values:
scoring answers, recording responses, completing matches, routing
winners into the next round and finding the next playable match.

Bracket topology is never stored explicitly. The destination of a
winner is computed from (round, match_number) by `next_slot`.
"""
import logging
import math
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from quizbracket.exceptions import (
    DuplicateResponseError,
    IncompleteMatchError,
    MatchStateError,
    ScoringPreconditionError,
)
from quizbracket.models import Bracket, Match, Question, Response, Round, ROUND_ORDER

logger = logging.getLogger(__name__)


STREAK_STEP = 0.1
MAX_STREAK_MULTIPLIER = 3.0
TIME_BONUS_CAP = 50

TIE_BREAK_PARTICIPANT1 = "participant1"
TIE_BREAK_PARTICIPANT2 = "participant2"

SLOT_PARTICIPANT1 = "participant1_id"
SLOT_PARTICIPANT2 = "participant2_id"


# =============================================================================
# SCORING
# =============================================================================

def calculate_score(
    is_correct: bool,
    base_points: int,
    streak: int = 0,
    time_bonus: int = 0,
    streak_step: float = STREAK_STEP,
    max_multiplier: float = MAX_STREAK_MULTIPLIER,
) -> int:
    """
    Points for one answer.

    base_points * min(1 + streak_step * streak, max_multiplier) + time_bonus,
    rounded half up. Wrong answers score 0 regardless of streak or bonus.
    """
    if not is_correct:
        return 0

    multiplier = min(1 + streak * streak_step, max_multiplier)
    score = base_points * multiplier + time_bonus
    return int(math.floor(score + 0.5))


def calculate_time_bonus(
    time_remaining: float,
    time_per_question: float,
    cap: int = TIME_BONUS_CAP,
) -> int:
    """Bonus proportional to the fraction of answer time left, at most `cap`."""
    if time_per_question <= 0:
        return 0
    fraction = min(1.0, max(0.0, time_remaining / time_per_question))
    return int(math.floor(fraction * cap))


# =============================================================================
# RESPONSES
# =============================================================================

def _reject(match: Match, reason: str, error_cls=ScoringPreconditionError):
    logger.warning(f"[RESPONSE REJECTED] match={match.id} reason={reason}")
    raise error_cls(match.id, reason)


def record_response(
    match: Match,
    response: Response,
    points_earned: Optional[int] = None
) -> Match:
    """
    Append a response and credit its points to the respondent.

    Every response consumes one question of the match. A question can be
    answered only once per match, so recording the same response twice is
    rejected rather than double counted.

    Raises:
        ScoringPreconditionError: respondent is not in this match, the match
            is not in play, or its questions are used up
        DuplicateResponseError: the question already has a response
    """
    if points_earned is None:
        points_earned = response.points_earned

    respondent = response.respondent_id

    if match.completed:
        _reject(match, "match already completed")
    if not match.is_ready:
        _reject(match, "match is waiting for participants")
    if not match.has_participant(respondent):
        _reject(match, f"participant {respondent!r} is not in this match")
    if any(r.question_id == response.question_id for r in match.responses):
        _reject(match, f"question {response.question_id!r} already answered", DuplicateResponseError)
    if match.questions_played >= match.question_count:
        _reject(match, "no questions remaining")

    scores = dict(match.scores)
    scores[respondent] = scores.get(respondent, 0) + points_earned

    return replace(
        match,
        scores=scores,
        responses=match.responses + (response,),
        questions_played=match.questions_played + 1,
    )


def record_timeout(match: Match) -> Match:
    """Consume the current question with nobody answering."""
    if not match.is_playable:
        raise MatchStateError(f"Match {match.id} is not in play")
    if match.questions_played >= match.question_count:
        raise MatchStateError(f"Match {match.id} has no questions remaining")
    return replace(match, questions_played=match.questions_played + 1)


# =============================================================================
# COMPLETION
# =============================================================================

def complete_match(
    match: Match,
    tie_break: str = TIE_BREAK_PARTICIPANT1
) -> Tuple[Match, str]:
    """
    Close a match once all of its questions have been played.

    The participant with the strictly higher score wins. An exact tie is
    decided by slot (participant1 unless tie_break says otherwise); this is
    arbitrary rather than skill based and is logged whenever it applies.

    Returns:
        (completed match, winner id)
    """
    if match.completed:
        raise MatchStateError(f"Match {match.id} is already completed")
    if not match.is_ready:
        raise MatchStateError(f"Match {match.id} is waiting for participants")
    if match.questions_played < match.question_count:
        raise IncompleteMatchError(match.id, match.questions_played, match.question_count)

    score1 = match.score_of(match.participant1_id)
    score2 = match.score_of(match.participant2_id)

    if score1 > score2:
        winner_id = match.participant1_id
    elif score2 > score1:
        winner_id = match.participant2_id
    else:
        if tie_break == TIE_BREAK_PARTICIPANT2:
            winner_id = match.participant2_id
        else:
            winner_id = match.participant1_id
        logger.warning(
            f"Match {match.id} tied at {score1}; awarded to {winner_id} by {tie_break} tie-break"
        )

    return replace(match, completed=True, winner_id=winner_id), winner_id


def is_tie(match: Match) -> bool:
    return match.score_of(match.participant1_id) == match.score_of(match.participant2_id)


# =============================================================================
# ADVANCEMENT
# =============================================================================

def next_slot(round_name: Round, match_number: int) -> Optional[Tuple[Round, int, str]]:
    """
    Destination of a match winner.

    Match m of round R feeds match index floor((m-1)/2) of round R+1,
    into participant1 when (m-1) is even and participant2 otherwise.

    Returns:
        (next round, 0-based match index, slot attribute), or None for finals
    """
    if match_number < 1:
        raise ValueError(f"match_number must be >= 1, got {match_number}")
    if round_name == Round.FINALS:
        return None

    next_round = ROUND_ORDER[ROUND_ORDER.index(round_name) + 1]
    position = match_number - 1
    slot = SLOT_PARTICIPANT1 if position % 2 == 0 else SLOT_PARTICIPANT2
    return next_round, position // 2, slot


def _with_round(bracket: Bracket, round_name: Round, matches: Sequence[Match]) -> Bracket:
    rounds = dict(bracket.rounds)
    rounds[round_name] = tuple(matches)
    return replace(bracket, rounds=rounds)


def replace_match(bracket: Bracket, match: Match) -> Bracket:
    """Swap in an updated copy of a match (matched by id)."""
    current = bracket.get_round_matches(match.round)
    if not any(m.id == match.id for m in current):
        raise MatchStateError(f"Match {match.id} is not part of this bracket")
    updated = [match if m.id == match.id else m for m in current]
    return _with_round(bracket, match.round, updated)


def advance_winner(bracket: Bracket, match: Match, winner_id: str) -> Bracket:
    """
    Route a winner into the next round, or crown the champion after finals.

    The given match (normally the completed one) is written back into the
    bracket as well, so callers get one consistent value. Only a
    completed match may advance its winner.
    """
    if not match.completed:
        raise MatchStateError(f"Match {match.id} is not completed")
    if not match.has_participant(winner_id):
        raise MatchStateError(f"{winner_id!r} did not play in match {match.id}")
    if match.winner_id != winner_id:
        raise MatchStateError(
            f"Match {match.id} was won by {match.winner_id!r}, not {winner_id!r}"
        )

    bracket = replace_match(bracket, match)
    destination = next_slot(match.round, match.match_number)

    if destination is None:
        logger.info(f"Champion decided: {winner_id}")
        return replace(bracket, champion=winner_id)

    next_round, index, slot = destination
    next_matches = list(bracket.get_round_matches(next_round))
    if index >= len(next_matches):
        raise MatchStateError(f"No {next_round.value} match at index {index}")

    target = next_matches[index]
    occupant = getattr(target, slot)
    if occupant and occupant != winner_id:
        raise MatchStateError(f"{target.id}.{slot} is already taken by {occupant!r}")

    next_matches[index] = replace(target, **{slot: winner_id})
    logger.info(f"{winner_id} advances from {match.id} to {target.id} ({slot})")
    return _with_round(bracket, next_round, next_matches)


def next_match(bracket: Bracket) -> Optional[Match]:
    """
    First playable match in play order, or None once the tournament is over.

    Scanning round by round keeps play strictly sequential: a later
    round's match cannot become current while a feeder is unfinished.
    """
    for round_name in bracket.round_names:
        for match in bracket.rounds[round_name]:
            if match.is_playable:
                return match
    return None


# =============================================================================
# QUESTION ROUTING
# =============================================================================

def question_slice(pool: Sequence[Question], match: Match) -> List[Question]:
    """The contiguous block of the pool reserved for a match."""
    start = match.question_offset
    return list(pool[start:start + match.question_count])


def current_question(pool: Sequence[Question], match: Match) -> Optional[Question]:
    """Question the match is on, or None once its slice is used up."""
    if match.questions_played >= match.question_count:
        return None
    index = match.question_offset + match.questions_played
    if index >= len(pool):
        return None
    return pool[index]
