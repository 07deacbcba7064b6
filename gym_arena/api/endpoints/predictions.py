from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gym_arena.api.dependencies import get_current_user, get_db
from gym_arena.schemas import prediction_schemas
from gym_arena.schemas.auth_schemas import TokenData
from gym_arena.services import prediction_service

router = APIRouter()


@router.get("/me", response_model=prediction_schemas.PredictionSummary)
async def my_prediction_summary_endpoint(
    tournament_id: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    return prediction_service.get_prediction_summary(
        db=db, user_id=current_user.user_id, tournament_id=tournament_id
    )


@router.get("/me/list", response_model=List[prediction_schemas.PredictionRead])
async def my_predictions_endpoint(
    tournament_id: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    return prediction_service.get_user_predictions(
        db=db, user_id=current_user.user_id, tournament_id=tournament_id
    )
