"""
Unit tests for bracket construction.
"""
import random

import pytest

from quizbracket.exceptions import InvalidSizeError, UnsupportedSizeError
from quizbracket.models import Player, Round
from quizbracket.tournament.builder import (
    build_bracket,
    matches_in_round,
    pool_size,
    rounds_for_size,
    shuffle_participants,
)


class TestBracketShape:
    """Tests for the round structure of a new bracket."""

    @pytest.mark.parametrize("size,first_round", [
        (4, Round.SEMI_FINALS),
        (8, Round.QUARTER_FINALS),
        (16, Round.ROUND_OF_16),
    ])
    def test_size_invariant(self, make_players, size, first_round):
        """size-1 matches, size/2 in the first round, later rounds empty."""
        bracket = build_bracket(size, make_players(size), question_count=3)

        assert bracket.total_matches == size - 1
        assert bracket.first_round == first_round
        assert len(bracket.rounds[first_round]) == size // 2

        for round_name in bracket.round_names[1:]:
            for match in bracket.rounds[round_name]:
                assert match.participant1_id == ""
                assert match.participant2_id == ""
                assert not match.completed
                assert match.winner_id is None

    def test_finals_is_single_match(self, make_players):
        for size in (4, 8, 16):
            bracket = build_bracket(size, make_players(size), question_count=1)
            assert len(bracket.rounds[Round.FINALS]) == 1
            assert bracket.champion is None

    def test_rounds_halve(self, make_players):
        bracket = build_bracket(16, make_players(16), question_count=1)
        counts = [len(bracket.rounds[r]) for r in bracket.round_names]
        assert counts == [8, 4, 2, 1]

    def test_eight_has_no_round_of_16(self, make_players):
        bracket = build_bracket(8, make_players(8), question_count=1)
        assert Round.ROUND_OF_16 not in bracket.rounds
        assert bracket.round_names == [Round.QUARTER_FINALS, Round.SEMI_FINALS, Round.FINALS]

    def test_match_numbers_and_ids(self, make_players):
        bracket = build_bracket(8, make_players(8), question_count=1)
        qf = bracket.rounds[Round.QUARTER_FINALS]
        assert [m.match_number for m in qf] == [1, 2, 3, 4]
        assert [m.id for m in qf] == ["qf-1", "qf-2", "qf-3", "qf-4"]
        assert bracket.finals.id == "final-1"


class TestSeeding:
    """Tests for participant placement."""

    @pytest.mark.parametrize("size", [4, 8, 16])
    def test_every_participant_seeded_once(self, make_players, size):
        players = make_players(size)
        bracket = build_bracket(size, players, question_count=1)

        seeded = []
        for match in bracket.rounds[bracket.first_round]:
            seeded.extend(match.participant_ids)

        assert sorted(seeded) == sorted(p.id for p in players)

    def test_consecutive_pairing(self, make_players, identity_shuffle):
        """Positions (0,1), (2,3)... become match 1, 2..."""
        bracket = build_bracket(8, make_players(8), shuffle=identity_shuffle, question_count=1)
        pairs = [m.participant_ids for m in bracket.rounds[Round.QUARTER_FINALS]]
        assert pairs == [("P1", "P2"), ("P3", "P4"), ("P5", "P6"), ("P7", "P8")]

    def test_seeded_rng_is_reproducible(self, make_players):
        players = make_players(16)
        a = build_bracket(16, players, rng=random.Random(7), question_count=1)
        b = build_bracket(16, players, rng=random.Random(7), question_count=1)
        assert a.to_dict() == b.to_dict()

    def test_input_order_not_mutated(self, make_players):
        players = make_players(8)
        original = list(players)
        shuffle_participants(players, random.Random(1))
        assert players == original

    def test_shuffle_reaches_every_first_slot(self, make_players):
        """Over many draws, P1 lands in every seeding position."""
        players = make_players(4)
        rng = random.Random(123)
        positions = set()
        for _ in range(200):
            order = shuffle_participants(players, rng)
            positions.add(order.index(players[0]))
        assert positions == {0, 1, 2, 3}


class TestQuestionOffsets:
    """Each match owns its own slice of the question pool."""

    def test_offsets_follow_play_order(self, make_players):
        bracket = build_bracket(8, make_players(8), question_count=5)
        offsets = [m.question_offset for m in bracket.all_matches]
        assert offsets == [0, 5, 10, 15, 20, 25, 30]
        assert all(m.question_count == 5 for m in bracket.all_matches)

    def test_pool_size(self):
        assert pool_size(4, 10) == 30
        assert pool_size(8, 10) == 70
        assert pool_size(16, 2) == 30


class TestValidation:
    """Tests for rejected inputs."""

    @pytest.mark.parametrize("size", [0, 2, 6, 12, 32])
    def test_unsupported_size(self, make_players, size):
        with pytest.raises(UnsupportedSizeError):
            build_bracket(size, make_players(size), question_count=1)

    def test_participant_count_mismatch(self, make_players):
        with pytest.raises(InvalidSizeError) as exc:
            build_bracket(8, make_players(7), question_count=1)
        assert exc.value.expected == 8
        assert exc.value.actual == 7

    def test_unsupported_checked_before_count(self, make_players):
        with pytest.raises(UnsupportedSizeError):
            build_bracket(6, make_players(4), question_count=1)

    def test_duplicate_ids_rejected(self):
        players = [Player(id="dup", name="A"), Player(id="dup", name="B"),
                   Player(id="x", name="C"), Player(id="y", name="D")]
        with pytest.raises(InvalidSizeError):
            build_bracket(4, players, question_count=1)

    def test_uses_configured_question_count(self, make_players):
        from quizbracket.config import settings
        bracket = build_bracket(4, make_players(4))
        assert bracket.question_count == settings.tournament.question_count


class TestRoundHelpers:

    def test_rounds_for_size(self):
        assert rounds_for_size(4) == [Round.SEMI_FINALS, Round.FINALS]

    def test_matches_in_round(self):
        assert matches_in_round(16, Round.QUARTER_FINALS) == 4
        assert matches_in_round(8, Round.ROUND_OF_16) == 0
        assert matches_in_round(4, Round.FINALS) == 1
