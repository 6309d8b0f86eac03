"""
Tournament Session - answer-by-answer orchestration.

Owns one bracket and its question pool and drives the progression
engine the way a game host does: score each answer into the current
match, close the match when its questions run out, advance the winner
and move on to the next match until a champion is crowned.
"""
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from quizbracket.config import Settings, settings as default_settings
from quizbracket.exceptions import ScoringPreconditionError, SessionError
from quizbracket.models import Bracket, Match, Participant, Question, Response, is_team
from quizbracket.tournament.builder import ShuffleFn, build_bracket, pool_size
from quizbracket.tournament.progression import (
    advance_winner,
    calculate_score,
    calculate_time_bonus,
    complete_match,
    current_question,
    is_tie,
    next_match,
    record_response,
    record_timeout,
    replace_match,
)
from quizbracket.tournament.standings import build_summary, compute_standings
from quizbracket.utils.observability import CORRELATION_ID, Logger, get_metrics

logger = Logger(__name__)


@dataclass
class AnswerResult:
    """Outcome of one question: an answer, or a timeout when response is None."""
    response: Optional[Response]
    match: Match
    points: int
    match_finished: bool = False
    winner_id: Optional[str] = None
    tournament_finished: bool = False


@dataclass
class TournamentSession:
    """
    A tournament in play.

    All transitions go through a per-session lock, so one session may be
    shared by concurrent request handlers without interleaving updates.
    """
    bracket: Bracket
    participants: List[Participant]
    questions: List[Question]
    name: str = ""
    subject: str = ""
    grade_level: Optional[int] = None
    config: Settings = field(default_factory=lambda: default_settings)
    id: str = field(default_factory=lambda: f"tour-{uuid.uuid4().hex[:12]}")
    started_at: datetime = field(default_factory=datetime.now)
    ended_at: Optional[datetime] = None

    def __post_init__(self):
        self._lock = threading.RLock()
        self._by_id = {p.id: p for p in self.participants}
        self._streaks: Dict[str, int] = {}
        self._question_started = time.monotonic()
        self._match_started = time.monotonic()
        self._metrics = get_metrics()

        needed = pool_size(self.bracket.size, self.bracket.question_count)
        if len(self.questions) < needed:
            raise SessionError(
                f"Question pool holds {len(self.questions)} questions, bracket needs {needed}"
            )
        self._metrics.active_sessions.inc()

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        participants: Sequence[Participant],
        questions: Sequence[Question],
        size: Optional[int] = None,
        name: str = "",
        subject: str = "",
        grade_level: Optional[int] = None,
        config: Optional[Settings] = None,
        shuffle: Optional[ShuffleFn] = None,
        rng: Optional[random.Random] = None,
    ) -> "TournamentSession":
        """Seed a bracket for the participants and open a session on it."""
        config = config or default_settings
        size = size or len(participants)
        bracket = build_bracket(
            size,
            participants,
            shuffle=shuffle,
            question_count=config.tournament.question_count,
            rng=rng,
        )
        session = cls(
            bracket=bracket,
            participants=list(participants),
            questions=list(questions),
            name=name or f"{subject.title() or 'Quiz'} Championship",
            subject=subject,
            grade_level=grade_level,
            config=config,
        )
        CORRELATION_ID.set(session.id)
        logger.log_event(
            "tournament_created",
            tournament_id=session.id,
            size=size,
            question_count=bracket.question_count,
            participant_type="team" if any(is_team(p) for p in participants) else "individual",
        )
        return session

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def current_match(self) -> Optional[Match]:
        return next_match(self.bracket)

    @property
    def current_question(self) -> Optional[Question]:
        match = self.current_match
        if match is None:
            return None
        return current_question(self.questions, match)

    @property
    def is_finished(self) -> bool:
        return self.bracket.champion is not None and self.current_match is None

    @property
    def champion(self) -> Optional[Participant]:
        if self.bracket.champion is None:
            return None
        return self._by_id.get(self.bracket.champion)

    def participant(self, participant_id: str) -> Optional[Participant]:
        return self._by_id.get(participant_id)

    def time_remaining(self) -> float:
        elapsed = time.monotonic() - self._question_started
        return max(0.0, self.config.tournament.time_per_question - elapsed)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _require_match(self) -> Match:
        match = self.current_match
        if match is None:
            raise SessionError(f"Tournament {self.id} is already finished")
        return match

    def _streak_for(self, participant_id: str, is_correct: bool) -> int:
        if not self.config.scoring.carry_streak_in_tournament:
            return 0
        streak = self._streaks.get(participant_id, 0) + 1 if is_correct else 0
        self._streaks[participant_id] = streak
        return streak

    def submit_answer(
        self,
        participant_id: str,
        option_index: int,
        time_remaining: Optional[float] = None,
        player_id: Optional[str] = None,
    ) -> AnswerResult:
        """
        Score an answer to the current question of the current match.

        Args:
            participant_id: Player or team answering
            option_index: Chosen option
            time_remaining: Seconds left on the clock (defaults to the
                session's own clock)
            player_id: Team member who answered, for team participants

        Raises:
            SessionError: tournament finished
            ScoringPreconditionError: participant not in the current match, or
                player_id is not a member of the answering team
        """
        with self._lock:
            match = self._require_match()
            question = current_question(self.questions, match)
            if question is None:
                raise SessionError(f"Match {match.id} has no question left to answer")

            participant = self._by_id.get(participant_id)
            if participant is None or not match.has_participant(participant_id):
                self._metrics.responses_rejected.labels(reason="not_in_match").inc()
                logger.log_warning(
                    "response_rejected",
                    match_id=match.id,
                    participant_id=participant_id,
                    reason="not_in_match",
                )
                raise ScoringPreconditionError(
                    match.id, f"participant {participant_id!r} is not in this match"
                )

            team = is_team(participant)
            if team and player_id and player_id not in participant.member_ids:
                self._metrics.responses_rejected.labels(reason="not_team_member").inc()
                logger.log_warning(
                    "response_rejected",
                    match_id=match.id,
                    participant_id=participant_id,
                    player_id=player_id,
                    reason="not_team_member",
                )
                raise ScoringPreconditionError(
                    match.id, f"player {player_id!r} is not a member of team {participant_id!r}"
                )

            is_correct = question.is_correct(option_index)
            tournament_cfg = self.config.tournament
            scoring_cfg = self.config.scoring

            if time_remaining is None:
                time_remaining = self.time_remaining()
            time_bonus = 0
            if tournament_cfg.enable_timer:
                time_bonus = calculate_time_bonus(
                    time_remaining, tournament_cfg.time_per_question, scoring_cfg.time_bonus_cap
                )

            streak = self._streak_for(participant_id, is_correct)
            points = calculate_score(
                is_correct,
                question.points,
                streak,
                time_bonus,
                streak_step=scoring_cfg.streak_step,
                max_multiplier=scoring_cfg.max_multiplier,
            )

            response = Response(
                question_id=question.id,
                player_id=(player_id or "") if team else participant_id,
                team_id=participant_id if team else None,
                answer=option_index,
                correct=is_correct,
                points_earned=points,
                time_to_answer=round(time.monotonic() - self._question_started, 3),
            )

            try:
                updated = record_response(match, response, points)
            except ScoringPreconditionError as e:
                self._metrics.responses_rejected.labels(reason=type(e).__name__).inc()
                raise

            self.bracket = replace_match(self.bracket, updated)
            self._metrics.responses_recorded.labels(correct=str(is_correct).lower()).inc()
            self._metrics.points_per_response.observe(points)
            logger.log_event(
                "response_recorded",
                match_id=updated.id,
                participant_id=participant_id,
                question_id=question.id,
                correct=is_correct,
                points=points,
            )

            return self._after_question(updated, response, points)

    def timeout(self) -> AnswerResult:
        """Expire the current question: nobody scores, the question is used up."""
        with self._lock:
            match = self._require_match()
            updated = record_timeout(match)
            self.bracket = replace_match(self.bracket, updated)
            self._metrics.question_timeouts.inc()
            logger.log_event("question_timed_out", match_id=match.id, questions_played=updated.questions_played)
            return self._after_question(updated, None, 0)

    def _after_question(self, match: Match, response: Optional[Response], points: int) -> AnswerResult:
        self._question_started = time.monotonic()
        result = AnswerResult(response=response, match=match, points=points)
        if match.questions_remaining > 0:
            return result

        completed, winner_id = self._finish_match(match)
        result.match = completed
        result.match_finished = True
        result.winner_id = winner_id
        result.tournament_finished = self.is_finished
        return result

    def _finish_match(self, match: Match):
        tie_break = self.config.tournament.tie_break
        if is_tie(match):
            self._metrics.tie_breaks_applied.inc()
            logger.log_warning("match_tie_break", match_id=match.id, tie_break=tie_break)

        completed, winner_id = complete_match(match, tie_break=tie_break)
        self.bracket = advance_winner(self.bracket, completed, winner_id)
        self._streaks.clear()

        self._metrics.matches_completed.labels(round=match.round.value).inc()
        self._metrics.match_duration.labels(round=match.round.value).observe(
            time.monotonic() - self._match_started
        )
        self._match_started = time.monotonic()
        logger.log_event(
            "match_completed",
            match_id=completed.id,
            round=completed.round.value,
            winner_id=winner_id,
            scores=dict(completed.scores),
        )

        if self.bracket.champion is not None and next_match(self.bracket) is None:
            self.ended_at = datetime.now()
            self._metrics.tournaments_completed.labels(size=str(self.bracket.size)).inc()
            self._metrics.active_sessions.dec()
            logger.log_event("tournament_completed", tournament_id=self.id, champion=winner_id)

        return completed, winner_id

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    def standings(self):
        """Current standings table (polars DataFrame)."""
        return compute_standings(self.bracket, self.participants)

    def summary(self) -> Dict[str, Any]:
        """Hand-off record for the persistence layer."""
        return build_summary(
            self.bracket,
            self.participants,
            name=self.name,
            subject=self.subject,
            grade_level=self.grade_level,
            started_at=self.started_at,
            ended_at=self.ended_at,
        )
