import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gym_arena.core.exceptions import (
    AlreadyJoined, BracketIncomplete, JoinConflict, NotAuthorized, TournamentFull,
    TournamentNotFound, TournamentNotOpen,
)
from gym_arena.models import tournament as tournament_model
from gym_arena.models.participant import Participant
from gym_arena.models.profile import Profile
from gym_arena.schemas import tournament_schemas
from gym_arena.schemas.auth_schemas import TokenData
from gym_arena.services import bracket_geometry, match_store

logger = logging.getLogger("gym_arena")

Tournament = tournament_model.Tournament


def is_organizer(tournament: Tournament, user: TokenData) -> bool:
    return user.is_admin or tournament.created_by == user.user_id


def get_tournament(db: Session, tournament_id: str) -> Optional[Tournament]:
    return db.query(Tournament).filter(Tournament.id == tournament_id).first()


def require_tournament(db: Session, tournament_id: str) -> Tournament:
    tournament = get_tournament(db, tournament_id)
    if not tournament:
        raise TournamentNotFound(tournament_id)
    return tournament


def participant_count(db: Session, tournament_id: str) -> int:
    return db.query(Participant).filter(Participant.tournament_id == tournament_id).count()


def create_tournament(db: Session, tournament_in: tournament_schemas.TournamentCreate, user: TokenData) -> Tournament:
    """
    Creates an upcoming tournament together with every match shell of its bracket
    (max_participants - 1 of them) in a single transaction.
    """
    if not user.is_admin:
        raise NotAuthorized("Only organizers can create tournaments.")
    bracket_geometry.validate_bracket_size(tournament_in.max_participants)

    db_tournament = Tournament(
        name=tournament_in.name,
        description=tournament_in.description or None,
        start_date=tournament_in.start_date,
        max_participants=tournament_in.max_participants,
        created_by=user.user_id,
        status=tournament_model.STATUS_UPCOMING,
    )
    db.add(db_tournament)
    db.flush() # assigns the id the shells point at

    for round_number, match_number in bracket_geometry.bracket_layout(db_tournament.max_participants):
        match_store.create_match_shell(db, db_tournament.id, round_number, match_number)

    db.commit()
    db.refresh(db_tournament)
    logger.info(
        f"Tournament created: {db_tournament.id} '{db_tournament.name}' "
        f"({db_tournament.max_participants} players) by {user.user_id}"
    )
    return db_tournament


def list_tournaments(db: Session, status: Optional[str] = None) -> List[Tuple[Tournament, int]]:
    counts = db.query(
        Participant.tournament_id, func.count(Participant.id).label("participant_count")
    ).group_by(Participant.tournament_id).subquery()

    query = db.query(Tournament, func.coalesce(counts.c.participant_count, 0)).outerjoin(
        counts, counts.c.tournament_id == Tournament.id
    )
    if status:
        query = query.filter(Tournament.status == status)
    return [(t, count) for t, count in query.order_by(Tournament.start_date.asc()).all()]


def list_participants(db: Session, tournament_id: str) -> List[dict]:
    require_tournament(db, tournament_id)
    rows = db.query(Participant, Profile.full_name).outerjoin(
        Profile, Profile.id == Participant.user_id
    ).filter(Participant.tournament_id == tournament_id).order_by(Participant.seed_number.asc()).all()
    return [
        {
            "tournament_id": p.tournament_id,
            "user_id": p.user_id,
            "seed_number": p.seed_number,
            "joined_at": p.joined_at,
            "full_name": full_name,
        }
        for p, full_name in rows
    ]


def join_tournament(db: Session, tournament_id: str, user_id: str) -> Participant:
    tournament = require_tournament(db, tournament_id)
    if tournament.status != tournament_model.STATUS_UPCOMING:
        logger.warning(f"Join rejected: tournament {tournament_id} is {tournament.status}")
        raise TournamentNotOpen(f"Tournament is {tournament.status}; only upcoming tournaments can be joined.")

    existing_participant = db.query(Participant).filter(
        Participant.tournament_id == tournament_id,
        Participant.user_id == user_id,
    ).first()
    if existing_participant:
        raise AlreadyJoined("Already a participant in this tournament.")

    current_count = participant_count(db, tournament_id)
    if current_count >= tournament.max_participants:
        raise TournamentFull("Tournament is full.")

    seed_number = current_count + 1
    participant = Participant(tournament_id=tournament_id, user_id=user_id, seed_number=seed_number)
    db.add(participant)
    try:
        db.flush()
    except IntegrityError:
        # Another join took this seed (or this user) between our count and insert
        db.rollback()
        raise JoinConflict("Someone joined at the same moment; please try again.")

    slot = bracket_geometry.initial_slot(seed_number)
    first_round_match = match_store.find_match(db, tournament_id, 1, slot.match_number)
    if first_round_match:
        match_store.set_player_slot(db, first_round_match.id, 1 if slot.is_player1 else 2, user_id)
    else:
        logger.warning(f"No round-1 shell for match {slot.match_number} in tournament {tournament_id}")

    db.commit()
    db.refresh(participant)
    logger.info(f"User {user_id} joined tournament {tournament_id} as seed {seed_number}")
    return participant


def start_tournament(db: Session, tournament_id: str, user: TokenData) -> Tournament:
    tournament = require_tournament(db, tournament_id)
    if not is_organizer(tournament, user):
        raise NotAuthorized("Only the tournament organizer can start it.")
    if tournament.status != tournament_model.STATUS_UPCOMING:
        raise TournamentNotOpen(f"Tournament is already {tournament.status}.")

    # Byes are not supported, so every seed must be taken before play begins
    joined = participant_count(db, tournament_id)
    if joined < tournament.max_participants:
        raise BracketIncomplete(
            f"Tournament needs {tournament.max_participants} participants to start, has {joined}."
        )

    tournament.status = tournament_model.STATUS_ACTIVE
    db.commit()
    db.refresh(tournament)
    logger.info(f"Tournament started: {tournament_id}")
    return tournament
