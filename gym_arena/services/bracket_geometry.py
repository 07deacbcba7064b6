"""
Single-elimination bracket geometry.

Pure functions, no state. Rounds are numbered from 1 (first round) up to
``total_rounds`` (the final); matches are numbered from 1 within a round.
A slot is identified by ``(match_number, is_player1)``.
"""
import math
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

from gym_arena.core.exceptions import InvalidConfiguration

# Powers of two only; total_rounds relies on it
ALLOWED_BRACKET_SIZES = (4, 8, 16, 32)


class MatchState(str, Enum):
    EMPTY = "EMPTY"
    PENDING = "PENDING"
    COMPLETE = "COMPLETE"


class Slot(NamedTuple):
    match_number: int
    is_player1: bool


class NextSlot(NamedTuple):
    round_number: int
    match_number: int
    is_player1: bool


def validate_bracket_size(max_participants: int) -> int:
    if max_participants not in ALLOWED_BRACKET_SIZES:
        raise InvalidConfiguration(
            f"Bracket size {max_participants} is not supported. "
            f"Choose one of {', '.join(str(s) for s in ALLOWED_BRACKET_SIZES)}."
        )
    return max_participants


def total_rounds(max_participants: int) -> int:
    validate_bracket_size(max_participants)
    return int(math.log2(max_participants))


def matches_in_round(max_participants: int, round_number: int) -> int:
    rounds = total_rounds(max_participants)
    if not 1 <= round_number <= rounds:
        raise ValueError(f"Round {round_number} is outside 1..{rounds}.")
    return max_participants // (2 ** round_number)


def bracket_layout(max_participants: int) -> List[Tuple[int, int]]:
    """Every (round_number, match_number) pair of the bracket, round by round."""
    layout = []
    for round_number in range(1, total_rounds(max_participants) + 1):
        for match_number in range(1, matches_in_round(max_participants, round_number) + 1):
            layout.append((round_number, match_number))
    return layout


def initial_slot(seed_number: int) -> Slot:
    """Round-1 slot for a seed: seeds 1 & 2 meet in match 1, 3 & 4 in match 2, ..."""
    if seed_number < 1:
        raise ValueError("Seed numbers start at 1.")
    return Slot(match_number=(seed_number + 1) // 2, is_player1=seed_number % 2 == 1)


def next_slot(round_number: int, match_number: int, rounds: int) -> Optional[NextSlot]:
    """Where the winner of (round_number, match_number) plays next; None for the final."""
    if round_number >= rounds:
        return None
    return NextSlot(
        round_number=round_number + 1,
        match_number=(match_number + 1) // 2,
        is_player1=match_number % 2 == 1,
    )


def round_name(round_number: int, rounds: int) -> str:
    if round_number == rounds:
        return "Final"
    if round_number == rounds - 1:
        return "Semi-Final"
    if round_number == rounds - 2:
        return "Quarter-Final"
    return f"Round {round_number}"


def match_state(match) -> MatchState:
    if match.winner_id:
        return MatchState.COMPLETE
    if match.player_1_id or match.player_2_id:
        return MatchState.PENDING
    return MatchState.EMPTY
