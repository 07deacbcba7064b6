"""
Persistence of match records, keyed by (tournament, round, match number).

Each function touches a single row and only flushes; the engine operation
that calls it owns the commit, so a winner write and its propagation land in
the same transaction. Writes are conditional on the match having no winner
yet, which is what makes a completed match terminal even under concurrent
organizers.
"""
import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from gym_arena.core.exceptions import MatchAlreadyComplete
from gym_arena.models.match import Match

SLOT_COLUMNS = {1: "player_1_id", 2: "player_2_id"}


def create_match_shell(db: Session, tournament_id: str, round_number: int, match_number: int) -> Match:
    shell = Match(
        tournament_id=tournament_id,
        round_number=round_number,
        match_number=match_number,
    )
    db.add(shell)
    return shell


def find_match(db: Session, tournament_id: str, round_number: int, match_number: int) -> Optional[Match]:
    return db.query(Match).filter(
        Match.tournament_id == tournament_id,
        Match.round_number == round_number,
        Match.match_number == match_number,
    ).first()


def get_match(db: Session, match_id: str) -> Optional[Match]:
    return db.query(Match).filter(Match.id == match_id).first()


def set_player_slot(db: Session, match_id: str, slot: int, user_id: str) -> None:
    if slot not in SLOT_COLUMNS:
        raise ValueError(f"Slot must be 1 or 2, got {slot}.")
    result = db.execute(
        update(Match)
        .where(Match.id == match_id, Match.winner_id.is_(None))
        .values({SLOT_COLUMNS[slot]: user_id})
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount == 0:
        raise MatchAlreadyComplete(f"Match {match_id} already has a winner; its slots are final.")


def set_winner(db: Session, match_id: str, winner_id: str, completed_at: Optional[datetime.datetime] = None) -> None:
    result = db.execute(
        update(Match)
        .where(Match.id == match_id, Match.winner_id.is_(None))
        .values(winner_id=winner_id, completed_at=completed_at or datetime.datetime.utcnow())
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount == 0:
        raise MatchAlreadyComplete(f"Match {match_id} already has a winner.")
