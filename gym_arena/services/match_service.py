import datetime
import logging
from typing import Optional

from sqlalchemy.orm import Session

from gym_arena.core.exceptions import (
    BracketInconsistent, IllegalWinner, MatchAlreadyComplete, MatchNotFound, NotAuthorized,
    TournamentNotActive,
)
from gym_arena.models import tournament as tournament_model
from gym_arena.models.match import Match
from gym_arena.schemas.auth_schemas import TokenData
from gym_arena.services import bracket_geometry, gamification_service, match_store
from gym_arena.services.tournament_service import is_organizer

logger = logging.getLogger("gym_arena")


def get_match(db: Session, match_id: str) -> Match:
    match = match_store.get_match(db, match_id)
    if not match:
        raise MatchNotFound(match_id)
    return match


def count_tournaments_won(db: Session, user_id: str) -> int:
    finals_won = db.query(Match).join(tournament_model.Tournament).filter(
        Match.winner_id == user_id,
        Match.match_number == 1,
        tournament_model.Tournament.status == tournament_model.STATUS_COMPLETED,
    ).all()
    return sum(
        1 for m in finals_won
        if m.round_number == bracket_geometry.total_rounds(m.tournament.max_participants)
    )


def crown_champion(db: Session, tournament: tournament_model.Tournament, champion_id: str) -> None:
    """Completes the tournament and pays the champion, inside the caller's transaction."""
    tournament.status = tournament_model.STATUS_COMPLETED
    gamification_service.grant_xp(
        db, champion_id, gamification_service.XP_REWARDS["TOURNAMENT_WON"], f"Won {tournament.name}"
    )


def check_champion_achievements(db: Session, champion_id: str):
    return gamification_service.check_achievements(
        db, champion_id, "tournaments_won", count_tournaments_won(db, champion_id)
    )


def record_winner(db: Session, match_id: str, winner_id: str, user: TokenData,
                  completed_at: Optional[datetime.datetime] = None) -> Match:
    """
    Marks a match complete and moves its winner into the downstream slot.

    Both writes happen in one transaction and both are conditional on the
    match still lacking a winner, so a repeated or concurrent call fails with
    MatchAlreadyComplete instead of propagating twice. Deciding the final
    completes the tournament; its winner is the champion.
    """
    match = get_match(db, match_id)
    tournament = match.tournament

    if not is_organizer(tournament, user):
        logger.warning(f"User {user.user_id} tried to set the winner of match {match_id}")
        raise NotAuthorized("Only the tournament organizer can record match results.")
    if tournament.status != tournament_model.STATUS_ACTIVE:
        raise TournamentNotActive(f"Tournament is {tournament.status}; results can only be recorded while it is active.")
    if match.winner_id:
        raise MatchAlreadyComplete(f"Match {match_id} already has a winner.")
    if not match.player_1_id or not match.player_2_id:
        raise IllegalWinner("Match does not have two players assigned.")
    if winner_id not in (match.player_1_id, match.player_2_id):
        raise IllegalWinner("Winner must be one of the players in the match.")

    rounds = bracket_geometry.total_rounds(tournament.max_participants)
    is_final = False
    try:
        match_store.set_winner(db, match.id, winner_id, completed_at)

        downstream = bracket_geometry.next_slot(match.round_number, match.match_number, rounds)
        if downstream is not None:
            next_match = match_store.find_match(db, tournament.id, downstream.round_number, downstream.match_number)
            if next_match is None:
                raise BracketInconsistent(
                    f"Round {downstream.round_number} match {downstream.match_number} is missing "
                    f"from tournament {tournament.id}; run a bracket repair and record the result again."
                )
            match_store.set_player_slot(db, next_match.id, 1 if downstream.is_player1 else 2, winner_id)
        else:
            is_final = True
            crown_champion(db, tournament, winner_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(match)
    logger.info(f"Winner recorded: match {match_id} (round {match.round_number}) -> {winner_id}")
    if is_final:
        logger.info(f"Tournament completed: {tournament.id}, champion {winner_id}")
        check_champion_achievements(db, winner_id)
    return match
