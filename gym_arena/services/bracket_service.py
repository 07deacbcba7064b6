import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from gym_arena.core.exceptions import NotAuthorized
from gym_arena.models import tournament as tournament_model
from gym_arena.models.match import Match
from gym_arena.models.participant import Participant
from gym_arena.models.prediction import Prediction
from gym_arena.models.profile import Profile
from gym_arena.schemas.auth_schemas import TokenData
from gym_arena.services import bracket_geometry, match_service, match_store
from gym_arena.services.tournament_service import is_organizer, require_tournament

logger = logging.getLogger("gym_arena")


def _tournament_matches(db: Session, tournament_id: str):
    return db.query(Match).filter(Match.tournament_id == tournament_id).order_by(
        Match.round_number.asc(), Match.match_number.asc()
    ).all()


def _resolve_players(db: Session, user_ids) -> Dict[str, Optional[str]]:
    user_ids = {uid for uid in user_ids if uid}
    if not user_ids:
        return {}
    profiles = db.query(Profile).filter(Profile.id.in_(user_ids)).all()
    return {p.id: p.full_name for p in profiles}


def get_bracket(db: Session, tournament_id: str, viewer_id: Optional[str] = None) -> dict:
    """
    The whole match tree of a tournament, grouped by round, with player names
    joined in from profiles, the champion once the final is decided, and the
    viewer's own predictions.
    """
    tournament = require_tournament(db, tournament_id)
    rounds = bracket_geometry.total_rounds(tournament.max_participants)
    matches = _tournament_matches(db, tournament_id)

    names = _resolve_players(
        db, [uid for m in matches for uid in (m.player_1_id, m.player_2_id, m.winner_id)]
    )

    def player(user_id):
        if not user_id:
            return None
        return {"id": user_id, "full_name": names.get(user_id)}

    by_round = {round_number: [] for round_number in range(1, rounds + 1)}
    for m in matches:
        by_round.setdefault(m.round_number, []).append({
            "id": m.id,
            "tournament_id": m.tournament_id,
            "round_number": m.round_number,
            "match_number": m.match_number,
            "player_1_id": m.player_1_id,
            "player_2_id": m.player_2_id,
            "winner_id": m.winner_id,
            "scheduled_at": m.scheduled_at,
            "completed_at": m.completed_at,
            "state": bracket_geometry.match_state(m).value,
            "player_1": player(m.player_1_id),
            "player_2": player(m.player_2_id),
            "winner": player(m.winner_id),
        })

    final = next((m for m in matches if m.round_number == rounds and m.match_number == 1), None)

    predictions = []
    if viewer_id and matches:
        predictions = [
            {"match_id": p.match_id, "predicted_winner_id": p.predicted_winner_id}
            for p in db.query(Prediction).filter(
                Prediction.user_id == viewer_id,
                Prediction.match_id.in_([m.id for m in matches]),
            ).all()
        ]

    return {
        "tournament": tournament,
        "total_rounds": rounds,
        "rounds": [
            {
                "round_number": round_number,
                "name": bracket_geometry.round_name(round_number, rounds),
                "matches": by_round[round_number],
            }
            for round_number in sorted(by_round)
        ],
        "champion": player(final.winner_id) if final else None,
        "predictions": predictions,
    }


def repair_bracket(db: Session, tournament_id: str, user: TokenData) -> int:
    """
    Re-derives every player slot from seeds and completed matches and fills the
    ones that are missing. Safe to run any number of times; returns how many
    slots it filled.
    """
    tournament = require_tournament(db, tournament_id)
    if not is_organizer(tournament, user):
        raise NotAuthorized("Only the tournament organizer can repair the bracket.")

    rounds = bracket_geometry.total_rounds(tournament.max_participants)
    matches = _tournament_matches(db, tournament_id)
    by_position = {(m.round_number, m.match_number): m for m in matches}

    missing = [pos for pos in bracket_geometry.bracket_layout(tournament.max_participants) if pos not in by_position]
    for round_number, match_number in missing:
        by_position[(round_number, match_number)] = match_store.create_match_shell(
            db, tournament_id, round_number, match_number
        )
        logger.warning(f"Recreated missing shell round {round_number} match {match_number} in {tournament_id}")
    if missing:
        db.flush()

    # Expected occupant of every slot: (round, match, slot) -> user id
    expected = {}
    participants = db.query(Participant).filter(Participant.tournament_id == tournament_id).all()
    for p in participants:
        slot = bracket_geometry.initial_slot(p.seed_number)
        expected[(1, slot.match_number, 1 if slot.is_player1 else 2)] = p.user_id
    for m in matches:
        if not m.winner_id:
            continue
        downstream = bracket_geometry.next_slot(m.round_number, m.match_number, rounds)
        if downstream is not None:
            expected[(downstream.round_number, downstream.match_number, 1 if downstream.is_player1 else 2)] = m.winner_id

    filled = 0
    for (round_number, match_number, slot), user_id in sorted(expected.items()):
        target = by_position[(round_number, match_number)]
        current = target.player_1_id if slot == 1 else target.player_2_id
        if current == user_id:
            continue
        if current is not None:
            logger.warning(
                f"Slot {slot} of round {round_number} match {match_number} holds {current}, "
                f"expected {user_id}; leaving it for manual review"
            )
            continue
        match_store.set_player_slot(db, target.id, slot, user_id)
        filled += 1

    champion_id = None
    final = by_position[(rounds, 1)]
    if final.winner_id and tournament.status != tournament_model.STATUS_COMPLETED:
        champion_id = final.winner_id
        match_service.crown_champion(db, tournament, champion_id)
        logger.info(f"Tournament {tournament_id} marked completed during repair, champion {champion_id}")

    db.commit()
    if champion_id:
        match_service.check_champion_achievements(db, champion_id)
    if filled:
        logger.info(f"Repaired {filled} slot(s) in tournament {tournament_id}")
    return filled
