"""
Tournament Simulator - plays a session with simulated answerers.

Each participant gets a hidden accuracy drawn around a target value.
For every question one of the two participants buzzes in first, or
nobody does and the question times out.
"""
import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from quizbracket.models import Participant, Player, Team
from quizbracket.tournament.session import TournamentSession

logger = logging.getLogger(__name__)


AVATARS = ["🦊", "🐼", "🦁", "🐯", "🐸", "🐙", "🦄", "🐧", "🐨", "🐵", "🦉", "🐳", "🐢", "🦋", "🐞", "🐝"]

TEAM_COLORS = [
    "#FF0000", "#0000FF", "#00FF00", "#FFD700",
    "#FF00FF", "#00FFFF", "#FF8C00", "#8B00FF",
    "#FF1493", "#00FF7F", "#FF4500", "#4169E1",
    "#32CD32", "#FF69B4", "#1E90FF", "#FFD700",
]


def team_color(index: int) -> str:
    return TEAM_COLORS[index % len(TEAM_COLORS)]


def make_players(count: int, start: int = 1) -> List[Player]:
    """Placeholder roster of individual players."""
    return [
        Player(id=f"P{i}", name=f"Player {i}", avatar=AVATARS[(i - 1) % len(AVATARS)])
        for i in range(start, start + count)
    ]


def make_teams(count: int, members_per_team: int = 2) -> List[Team]:
    """Placeholder teams, each with its own members."""
    teams = []
    for i in range(count):
        members = make_players(members_per_team, start=i * members_per_team + 1)
        teams.append(Team(
            id=f"team-{i + 1}",
            name=f"Team {i + 1}",
            members=tuple(members),
            color=team_color(i),
        ))
    return teams


@dataclass
class SimulationStats:
    """Counters gathered while simulating a tournament."""
    answers: int = 0
    correct: int = 0
    timeouts: int = 0
    matches: int = 0
    skill: Dict[str, float] = field(default_factory=dict)

    @property
    def accuracy(self) -> float:
        return self.correct / self.answers if self.answers else 0.0


class TournamentSimulator:
    """Drive a TournamentSession to completion with random answers."""

    def __init__(
        self,
        accuracy: float = 0.7,
        spread: float = 0.2,
        timeout_rate: float = 0.05,
        seed: Optional[int] = None
    ):
        """
        Args:
            accuracy: Mean chance that a participant answers correctly
            spread: Per-participant deviation around the mean
            timeout_rate: Chance that nobody answers a question
            seed: Seed for reproducible runs
        """
        self.accuracy = accuracy
        self.spread = spread
        self.timeout_rate = timeout_rate
        self.rng = random.Random(seed)

    def _skill(self, participants: List[Participant]) -> Dict[str, float]:
        skill = {}
        for p in participants:
            value = self.accuracy + self.rng.uniform(-self.spread, self.spread)
            skill[p.id] = min(1.0, max(0.0, value))
        return skill

    def run(self, session: TournamentSession) -> SimulationStats:
        stats = SimulationStats(skill=self._skill(session.participants))
        time_limit = session.config.tournament.time_per_question

        while not session.is_finished:
            match = session.current_match
            question = session.current_question

            if self.rng.random() < self.timeout_rate:
                result = session.timeout()
                stats.timeouts += 1
            else:
                pid = self.rng.choice(match.participant_ids)
                if self.rng.random() < stats.skill[pid]:
                    option = question.correct_answer
                else:
                    wrong = [i for i in range(len(question.options)) if i != question.correct_answer]
                    option = self.rng.choice(wrong)

                player_id = None
                participant = session.participant(pid)
                if isinstance(participant, Team) and participant.members:
                    player_id = self.rng.choice(participant.members).id

                result = session.submit_answer(
                    pid,
                    option,
                    time_remaining=self.rng.uniform(0, time_limit),
                    player_id=player_id,
                )
                stats.answers += 1
                stats.correct += int(result.response.correct)

            if result.match_finished:
                stats.matches += 1

        logger.info(
            f"Simulated {stats.matches} matches: {stats.answers} answers "
            f"({stats.accuracy:.0%} correct), {stats.timeouts} timeouts"
        )
        return stats
