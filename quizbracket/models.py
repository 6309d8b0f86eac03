"""
Core data model for quiz tournaments.

All types are immutable value objects. Engine operations never mutate
a Match or Bracket in place; they return updated copies built with
dataclasses.replace.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Any, Tuple, Union


class Round(str, Enum):
    """Elimination stages in play order."""
    ROUND_OF_16 = "roundOf16"
    QUARTER_FINALS = "quarterFinals"
    SEMI_FINALS = "semiFinals"
    FINALS = "finals"


# Play order (earliest first)
ROUND_ORDER: Tuple[Round, ...] = (
    Round.ROUND_OF_16,
    Round.QUARTER_FINALS,
    Round.SEMI_FINALS,
    Round.FINALS,
)

# Short prefixes used in match ids
ROUND_PREFIX = {
    Round.ROUND_OF_16: "r16",
    Round.QUARTER_FINALS: "qf",
    Round.SEMI_FINALS: "sf",
    Round.FINALS: "final",
}

ROUND_LABELS = {
    Round.ROUND_OF_16: "Round of 16",
    Round.QUARTER_FINALS: "Quarterfinals",
    Round.SEMI_FINALS: "Semifinals",
    Round.FINALS: "Final",
}


# =============================================================================
# PARTICIPANTS
# =============================================================================

@dataclass(frozen=True)
class Player:
    """An individual student taking part in a game."""
    id: str
    name: str
    avatar: str = ""

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def display_avatar(self) -> str:
        return self.avatar

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "avatar": self.avatar}


@dataclass(frozen=True)
class Team:
    """A group of students scored as a single participant."""
    id: str
    name: str
    members: Tuple[Player, ...] = ()
    color: str = ""
    avatar: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def display_avatar(self) -> str:
        """Team avatar, falling back to the first member's."""
        if self.avatar:
            return self.avatar
        if self.members:
            return self.members[0].avatar
        return ""

    @property
    def member_ids(self) -> List[str]:
        return [m.id for m in self.members]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "avatar": self.display_avatar,
            "members": [m.to_dict() for m in self.members],
        }


Participant = Union[Player, Team]


def is_team(participant: Participant) -> bool:
    return isinstance(participant, Team)


# =============================================================================
# QUESTIONS & RESPONSES
# =============================================================================

@dataclass(frozen=True)
class Question:
    """A multiple choice question."""
    id: str
    text: str
    options: Tuple[str, ...]
    correct_answer: int          # index into options
    subject: str = "math"
    grade_level: int = 1
    points: int = 100
    time_limit: Optional[int] = None  # seconds

    def is_correct(self, option_index: int) -> bool:
        return option_index == self.correct_answer

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "subject": self.subject,
            "grade_level": self.grade_level,
            "points": self.points,
            "time_limit": self.time_limit,
        }


@dataclass(frozen=True)
class Response:
    """One answer event. Never mutated after creation."""
    question_id: str
    player_id: str                      # empty when a team answered
    answer: int
    correct: bool
    points_earned: int
    timestamp: datetime = field(default_factory=datetime.now)
    team_id: Optional[str] = None
    time_to_answer: Optional[float] = None  # seconds

    @property
    def respondent_id(self) -> str:
        """The participant the points belong to."""
        return self.team_id or self.player_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "player_id": self.player_id,
            "team_id": self.team_id,
            "answer": self.answer,
            "correct": self.correct,
            "points_earned": self.points_earned,
            "timestamp": self.timestamp.isoformat(),
            "time_to_answer": self.time_to_answer,
        }


# =============================================================================
# BRACKET
# =============================================================================

@dataclass(frozen=True)
class Match:
    """A head-to-head contest within one round."""
    id: str
    match_number: int                   # 1-based position within round
    round: Round
    participant1_id: str = ""
    participant2_id: str = ""
    scores: Dict[str, int] = field(default_factory=dict)
    responses: Tuple[Response, ...] = ()
    completed: bool = False
    winner_id: Optional[str] = None

    # Question routing
    question_count: int = 10
    question_offset: int = 0
    questions_played: int = 0

    @property
    def participant_ids(self) -> Tuple[str, str]:
        return (self.participant1_id, self.participant2_id)

    @property
    def is_ready(self) -> bool:
        """Both slots are filled."""
        return bool(self.participant1_id) and bool(self.participant2_id)

    @property
    def is_playable(self) -> bool:
        return self.is_ready and not self.completed

    @property
    def questions_remaining(self) -> int:
        return max(0, self.question_count - self.questions_played)

    def has_participant(self, participant_id: str) -> bool:
        return bool(participant_id) and participant_id in self.participant_ids

    def score_of(self, participant_id: str) -> int:
        return self.scores.get(participant_id, 0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "match_number": self.match_number,
            "round": self.round.value,
            "participant1_id": self.participant1_id,
            "participant2_id": self.participant2_id,
            "scores": dict(self.scores),
            "responses": [r.to_dict() for r in self.responses],
            "completed": self.completed,
            "winner_id": self.winner_id,
            "question_count": self.question_count,
            "question_offset": self.question_offset,
            "questions_played": self.questions_played,
        }


@dataclass(frozen=True)
class Bracket:
    """
    Complete single-elimination structure for one tournament.

    Only the rounds used by the bracket size are present in `rounds`.
    Topology is implicit: a match's destination in the next round is
    derived from its match number (see progression.next_slot).
    """
    size: int
    rounds: Dict[Round, Tuple[Match, ...]] = field(default_factory=dict)
    champion: Optional[str] = None
    question_count: int = 10

    @property
    def round_names(self) -> List[Round]:
        """Rounds present in this bracket, in play order."""
        return [r for r in ROUND_ORDER if r in self.rounds]

    @property
    def first_round(self) -> Round:
        return self.round_names[0]

    @property
    def all_matches(self) -> List[Match]:
        """All matches in play order."""
        matches = []
        for round_name in self.round_names:
            matches.extend(self.rounds[round_name])
        return matches

    @property
    def total_matches(self) -> int:
        return sum(len(matches) for matches in self.rounds.values())

    @property
    def finals(self) -> Match:
        return self.rounds[Round.FINALS][0]

    @property
    def is_complete(self) -> bool:
        return all(m.completed for m in self.all_matches)

    @property
    def all_responses(self) -> List[Response]:
        responses = []
        for match in self.all_matches:
            responses.extend(match.responses)
        return responses

    def get_round_matches(self, round_name: Round) -> Tuple[Match, ...]:
        return self.rounds.get(round_name, ())

    def get_match(self, match_id: str) -> Optional[Match]:
        for match in self.all_matches:
            if match.id == match_id:
                return match
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize bracket to dictionary."""
        return {
            "size": self.size,
            "question_count": self.question_count,
            "champion": self.champion,
            "rounds": {
                r.value: [m.to_dict() for m in self.rounds[r]]
                for r in self.round_names
            },
        }
