from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from gym_arena.api.dependencies import get_current_user, get_db, get_optional_user, to_http_exception
from gym_arena.core.exceptions import ArenaError
from gym_arena.schemas import match_schemas, tournament_schemas
from gym_arena.schemas.auth_schemas import TokenData
from gym_arena.services import bracket_geometry, bracket_service, tournament_service

router = APIRouter()


def _summary(tournament, participant_count: int) -> tournament_schemas.TournamentSummary:
    return tournament_schemas.TournamentSummary(
        **tournament_schemas.TournamentRead.model_validate(tournament).model_dump(),
        participant_count=participant_count,
        total_rounds=bracket_geometry.total_rounds(tournament.max_participants),
    )


@router.post("/", response_model=tournament_schemas.TournamentSummary, status_code=status.HTTP_201_CREATED)
async def create_tournament_endpoint(
    tournament_in: tournament_schemas.TournamentCreate,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    """
    Creates an upcoming tournament and reserves its whole bracket.

    - **max_participants**: 4, 8, 16 or 32; the bracket gets max_participants - 1 empty matches.
    """
    try:
        tournament = tournament_service.create_tournament(db=db, tournament_in=tournament_in, user=current_user)
    except ArenaError as e:
        raise to_http_exception(e)
    return _summary(tournament, 0)


@router.get("/", response_model=List[tournament_schemas.TournamentSummary])
async def list_tournaments_endpoint(
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(upcoming|active|completed)$"),
    db: Session = Depends(get_db),
):
    rows = tournament_service.list_tournaments(db=db, status=status_filter)
    return [_summary(tournament, count) for tournament, count in rows]


@router.get("/{tournament_id}", response_model=tournament_schemas.TournamentSummary)
async def get_tournament_endpoint(
    tournament_id: str,
    db: Session = Depends(get_db),
):
    tournament = tournament_service.get_tournament(db=db, tournament_id=tournament_id)
    if not tournament:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tournament not found")
    return _summary(tournament, tournament_service.participant_count(db, tournament_id))


@router.post("/{tournament_id}/join", response_model=tournament_schemas.ParticipantRead, status_code=status.HTTP_201_CREATED)
async def join_tournament_endpoint(
    tournament_id: str,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    try:
        participant = tournament_service.join_tournament(db=db, tournament_id=tournament_id, user_id=current_user.user_id)
    except ArenaError as e:
        raise to_http_exception(e)
    return participant


@router.post("/{tournament_id}/start", response_model=tournament_schemas.TournamentSummary)
async def start_tournament_endpoint(
    tournament_id: str,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    try:
        tournament = tournament_service.start_tournament(db=db, tournament_id=tournament_id, user=current_user)
    except ArenaError as e:
        raise to_http_exception(e)
    return _summary(tournament, tournament_service.participant_count(db, tournament_id))


@router.get("/{tournament_id}/participants", response_model=List[tournament_schemas.ParticipantRead])
async def list_participants_endpoint(
    tournament_id: str,
    db: Session = Depends(get_db),
):
    try:
        return tournament_service.list_participants(db=db, tournament_id=tournament_id)
    except ArenaError as e:
        raise to_http_exception(e)


@router.get("/{tournament_id}/bracket", response_model=match_schemas.BracketRead)
async def get_bracket_endpoint(
    tournament_id: str,
    db: Session = Depends(get_db),
    viewer: Optional[TokenData] = Depends(get_optional_user),
):
    """
    Full match tree grouped by round, with player names, the champion once the
    final is decided, and the caller's own predictions when authenticated.
    """
    try:
        return bracket_service.get_bracket(
            db=db, tournament_id=tournament_id, viewer_id=viewer.user_id if viewer else None
        )
    except ArenaError as e:
        raise to_http_exception(e)


@router.post("/{tournament_id}/repair", response_model=tournament_schemas.RepairResult)
async def repair_bracket_endpoint(
    tournament_id: str,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    try:
        filled = bracket_service.repair_bracket(db=db, tournament_id=tournament_id, user=current_user)
    except ArenaError as e:
        raise to_http_exception(e)
    return {"tournament_id": tournament_id, "slots_filled": filled}
