"""
Unit tests for standings and tournament summaries.
"""
from datetime import datetime

import pytest

from quizbracket.tournament.builder import build_bracket
from quizbracket.tournament.progression import next_match
from quizbracket.tournament.standings import (
    build_summary,
    compute_standings,
    responses_frame,
    results_frame,
    standings_from_summary,
)


@pytest.fixture
def players(make_players):
    return make_players(4)


@pytest.fixture
def finished_bracket(players, identity_shuffle, play_match):
    """sf-1: P1 beats P2, sf-2: P4 beats P3, final: P4 beats P1."""
    bracket = build_bracket(4, players, shuffle=identity_shuffle, question_count=1)
    for winner in ("P1", "P4", "P4"):
        bracket = play_match(bracket, next_match(bracket), winner)
    return bracket


class TestFrames:

    def test_responses_frame(self, finished_bracket):
        df = responses_frame(finished_bracket)
        assert df.height == 3
        assert df["participant_id"].to_list() == ["P1", "P4", "P4"]

    def test_results_frame(self, finished_bracket):
        df = results_frame(finished_bracket)
        assert df.height == 6
        assert df["won"].sum() == 3

    def test_empty_bracket(self, players):
        bracket = build_bracket(4, players, question_count=1)
        assert responses_frame(bracket).height == 0
        assert results_frame(bracket).height == 0


class TestComputeStandings:
    """Tests for the aggregated standings table."""

    def test_ordering(self, finished_bracket, players):
        df = compute_standings(finished_bracket, players)
        ids = df["participant_id"].to_list()
        assert ids[:2] == ["P4", "P1"]
        assert set(ids[2:]) == {"P2", "P3"}

    def test_champion_row(self, finished_bracket, players):
        rows = {r["participant_id"]: r for r in compute_standings(finished_bracket, players).to_dicts()}
        champ = rows["P4"]
        assert champ["points"] == 200
        assert champ["correct_answers"] == 2
        assert champ["answered"] == 2
        assert champ["matches_played"] == 2
        assert champ["matches_won"] == 2
        assert champ["is_champion"] is True
        assert champ["furthest_round"] == "finals"

    def test_eliminated_rows(self, finished_bracket, players):
        rows = {r["participant_id"]: r for r in compute_standings(finished_bracket, players).to_dicts()}
        assert rows["P1"]["furthest_round"] == "finals"
        assert rows["P1"]["is_champion"] is False
        assert rows["P2"]["points"] == 0
        assert rows["P2"]["matches_played"] == 1
        assert rows["P2"]["furthest_round"] == "semiFinals"

    def test_before_any_play(self, players):
        bracket = build_bracket(4, players, question_count=1)
        df = compute_standings(bracket, players)
        assert df.height == 4
        assert df["points"].to_list() == [0, 0, 0, 0]
        assert df["furthest_round"].null_count() == 4
        assert not any(df["is_champion"].to_list())

    def test_team_names(self, make_teams, identity_shuffle):
        teams = make_teams(4)
        bracket = build_bracket(4, teams, shuffle=identity_shuffle, question_count=1)
        df = compute_standings(bracket, teams)
        assert set(df["name"].to_list()) == {"Team 1", "Team 2", "Team 3", "Team 4"}
        assert all(df["is_team"].to_list())


class TestSummary:
    """Tests for the archival summary."""

    def test_summary_fields(self, finished_bracket, players):
        summary = build_summary(
            finished_bracket,
            players,
            name="Math Cup",
            subject="math",
            grade_level=3,
            started_at=datetime(2025, 3, 1, 10, 0),
            ended_at=datetime(2025, 3, 1, 10, 30),
        )

        assert summary["game_type"] == "tournament"
        assert summary["participant_type"] == "individual"
        assert summary["champion"] == {"id": "P4", "name": "Player 4", "final_score": 100}
        assert summary["duration_minutes"] == 30.0
        assert len(summary["responses"]) == 3
        assert len(summary["standings"]) == 4
        assert summary["bracket"]["champion"] == "P4"

    def test_unfinished_summary(self, players):
        bracket = build_bracket(4, players, question_count=1)
        summary = build_summary(bracket, players)
        assert summary["champion"] is None
        assert summary["duration_minutes"] is None

    def test_standings_from_summary(self, finished_bracket, players):
        summary = build_summary(finished_bracket, players)
        df = standings_from_summary(summary)
        assert df.height == 4
        assert df["participant_id"].to_list()[0] == "P4"

    def test_standings_from_empty_summary(self):
        assert len(standings_from_summary({})) == 0
