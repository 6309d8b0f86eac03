"""
Bracket construction.

Seeds participants at random and lays out every round of a
single-elimination bracket. Rounds after the first start with empty
participant slots that the progression engine fills as winners advance.
"""
import logging
import random
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from quizbracket.exceptions import InvalidSizeError, UnsupportedSizeError
from quizbracket.models import Bracket, Match, Participant, Round, ROUND_ORDER, ROUND_PREFIX

logger = logging.getLogger(__name__)


SUPPORTED_SIZES: Tuple[int, ...] = (4, 8, 16)

# First playable round for each bracket size
FIRST_ROUND = {
    16: Round.ROUND_OF_16,
    8: Round.QUARTER_FINALS,
    4: Round.SEMI_FINALS,
}

ShuffleFn = Callable[[Sequence[Participant]], List[Participant]]


def shuffle_participants(
    participants: Sequence[Participant],
    rng: Optional[random.Random] = None
) -> List[Participant]:
    """Uniform (Fisher-Yates) shuffle into a new list."""
    shuffled = list(participants)
    (rng or random).shuffle(shuffled)
    return shuffled


def rounds_for_size(size: int) -> List[Round]:
    """Rounds used by a bracket of `size`, in play order."""
    if size not in SUPPORTED_SIZES:
        raise UnsupportedSizeError(size, SUPPORTED_SIZES)
    start = ROUND_ORDER.index(FIRST_ROUND[size])
    return list(ROUND_ORDER[start:])


def matches_in_round(size: int, round_name: Round) -> int:
    """Number of matches a round holds in a bracket of `size`."""
    rounds = rounds_for_size(size)
    if round_name not in rounds:
        return 0
    return size // (2 ** (rounds.index(round_name) + 1))


def match_id(round_name: Round, match_number: int) -> str:
    return f"{ROUND_PREFIX[round_name]}-{match_number}"


def _validate(size: int, participants: Sequence[Participant]) -> None:
    if size not in SUPPORTED_SIZES:
        logger.error(f"Rejected bracket size {size}")
        raise UnsupportedSizeError(size, SUPPORTED_SIZES)

    if len(participants) != size:
        logger.error(f"Bracket of {size} given {len(participants)} participants")
        raise InvalidSizeError(size, len(participants))

    ids = [p.id for p in participants]
    if any(not pid for pid in ids):
        raise InvalidSizeError(size, len(participants), "participant without an id")
    if len(set(ids)) != len(ids):
        raise InvalidSizeError(size, len(set(ids)), "duplicate participant ids")


def build_bracket(
    size: int,
    participants: Sequence[Participant],
    shuffle: Optional[ShuffleFn] = None,
    question_count: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Bracket:
    """
    Build a seeded bracket.

    Args:
        size: Bracket size (4, 8 or 16)
        participants: Exactly `size` players or teams
        shuffle: Seeding function; defaults to a uniform random shuffle
        question_count: Questions allotted per match (defaults to settings)
        rng: Random source for the default shuffle

    Returns:
        Bracket with the first round paired and later rounds empty
    """
    _validate(size, participants)

    if question_count is None:
        from quizbracket.config import settings
        question_count = settings.tournament.question_count

    if shuffle is None:
        seeded = shuffle_participants(participants, rng)
    else:
        seeded = list(shuffle(participants))

    rounds: Dict[Round, Tuple[Match, ...]] = {}
    play_index = 0

    for round_idx, round_name in enumerate(rounds_for_size(size)):
        count = matches_in_round(size, round_name)
        matches = []

        for i in range(count):
            # First round pairs consecutive seeds; later slots stay empty
            if round_idx == 0:
                p1, p2 = seeded[i * 2].id, seeded[i * 2 + 1].id
            else:
                p1, p2 = "", ""

            matches.append(Match(
                id=match_id(round_name, i + 1),
                match_number=i + 1,
                round=round_name,
                participant1_id=p1,
                participant2_id=p2,
                question_count=question_count,
                question_offset=play_index * question_count,
            ))
            play_index += 1

        rounds[round_name] = tuple(matches)

    bracket = Bracket(size=size, rounds=rounds, question_count=question_count)
    logger.info(
        f"Built {size}-participant bracket with {bracket.total_matches} matches "
        f"starting at {bracket.first_round.value}"
    )
    return bracket


def pool_size(size: int, question_count: int) -> int:
    """Questions a full tournament consumes: one slice per match."""
    if size not in SUPPORTED_SIZES:
        raise UnsupportedSizeError(size, SUPPORTED_SIZES)
    return question_count * (size - 1)
