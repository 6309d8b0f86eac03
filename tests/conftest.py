# tests/conftest.py
import pytest
import tempfile
from pathlib import Path
from datetime import datetime

from quizbracket.models import Player, Team, Question, Response

# Configure pytest
pytest_plugins = []

# Markers for test categorization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "e2e: marks tests as end-to-end tests")


@pytest.fixture(scope="session")
def test_data_dir():
    """Temporary directory for test data."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_players():
    """Factory for individual players P1..Pn."""
    def _make(count):
        return [Player(id=f"P{i}", name=f"Player {i}", avatar=f"avatar-{i}") for i in range(1, count + 1)]
    return _make


@pytest.fixture
def make_teams():
    """Factory for two-member teams."""
    def _make(count):
        teams = []
        for i in range(1, count + 1):
            members = (
                Player(id=f"s{i}a", name=f"Student {i}A", avatar=f"a{i}"),
                Player(id=f"s{i}b", name=f"Student {i}B", avatar=f"b{i}"),
            )
            teams.append(Team(id=f"T{i}", name=f"Team {i}", members=members))
        return teams
    return _make


@pytest.fixture
def make_questions():
    """Factory for questions whose correct option is always index 0."""
    def _make(count, points=100, subject="math", grade_level=3):
        return [
            Question(
                id=f"q{i}",
                text=f"Question {i}",
                options=("right", "wrong", "also wrong", "nope"),
                correct_answer=0,
                subject=subject,
                grade_level=grade_level,
                points=points,
            )
            for i in range(1, count + 1)
        ]
    return _make


@pytest.fixture
def identity_shuffle():
    """Seeding that keeps the given participant order."""
    return lambda participants: list(participants)


@pytest.fixture
def make_response():
    """Factory for a response credited to a participant."""
    def _make(question_id, participant_id, points=100, correct=True, team=False):
        return Response(
            question_id=question_id,
            player_id="" if team else participant_id,
            team_id=participant_id if team else None,
            answer=0 if correct else 1,
            correct=correct,
            points_earned=points,
            timestamp=datetime(2025, 1, 1, 12, 0, 0),
        )
    return _make


@pytest.fixture
def play_match(make_response):
    """
    Play out a match so that `winner_id` wins, then advance the winner.

    Returns the updated bracket.
    """
    from quizbracket.tournament.progression import (
        advance_winner,
        complete_match,
        record_response,
    )

    def _play(bracket, match, winner_id):
        current = bracket.get_match(match.id)
        for n in range(current.question_count):
            qid = f"{current.id}-q{n + 1}"
            current = record_response(current, make_response(qid, winner_id, points=100), 100)
        completed, winner = complete_match(current)
        assert winner == winner_id
        return advance_winner(bracket, completed, winner)

    return _play


@pytest.fixture
def sample_question_rows():
    """Raw question rows in the browser app's camelCase layout."""
    return [
        {"id": "m1", "text": "2 + 2?", "options": ["3", "4", "5", "6"], "correctAnswer": 1, "gradeLevel": 2, "points": 100},
        {"id": "m2", "text": "3 x 3?", "options": ["6", "9", "12", "8"], "correctAnswer": 1, "gradeLevel": 3, "points": 100},
        {"id": "m3", "text": "10 - 4?", "options": ["6", "5", "4", "7"], "correctAnswer": 0, "gradeLevel": 3, "points": 150},
        {"id": "m4", "text": "12 / 3?", "options": ["3", "4", "6", "2"], "correctAnswer": 1, "gradeLevel": 4, "points": 150},
        {"id": "m5", "text": "7 x 8?", "options": ["54", "56", "58", "64"], "correctAnswer": 1, "gradeLevel": 6, "points": 200},
    ]
