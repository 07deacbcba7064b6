from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gym_arena.api.dependencies import get_current_user, get_db, to_http_exception
from gym_arena.core.exceptions import ArenaError
from gym_arena.schemas import match_schemas, prediction_schemas
from gym_arena.schemas.auth_schemas import TokenData
from gym_arena.services import bracket_geometry, match_service, prediction_service

router = APIRouter()


def _match_read(match) -> match_schemas.MatchRead:
    return match_schemas.MatchRead(
        id=match.id,
        tournament_id=match.tournament_id,
        round_number=match.round_number,
        match_number=match.match_number,
        player_1_id=match.player_1_id,
        player_2_id=match.player_2_id,
        winner_id=match.winner_id,
        scheduled_at=match.scheduled_at,
        completed_at=match.completed_at,
        state=bracket_geometry.match_state(match).value,
    )


@router.get("/{match_id}", response_model=match_schemas.MatchRead)
async def get_match_endpoint(
    match_id: str,
    db: Session = Depends(get_db),
):
    try:
        return _match_read(match_service.get_match(db=db, match_id=match_id))
    except ArenaError as e:
        raise to_http_exception(e)


@router.post("/{match_id}/winner", response_model=match_schemas.MatchRead)
async def record_winner_endpoint(
    match_id: str,
    result_in: match_schemas.WinnerUpdate,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    """
    Records the winner of a match (organizer only) and advances them to the
    next round. Deciding the final completes the tournament.
    """
    try:
        match = match_service.record_winner(
            db=db, match_id=match_id, winner_id=result_in.winner_id, user=current_user
        )
    except ArenaError as e:
        raise to_http_exception(e)
    return _match_read(match)


@router.put("/{match_id}/prediction", response_model=prediction_schemas.PredictionRead)
async def record_prediction_endpoint(
    match_id: str,
    prediction_in: prediction_schemas.PredictionCreate,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    try:
        return prediction_service.record_prediction(
            db=db,
            user_id=current_user.user_id,
            match_id=match_id,
            predicted_winner_id=prediction_in.predicted_winner_id,
        )
    except ArenaError as e:
        raise to_http_exception(e)
