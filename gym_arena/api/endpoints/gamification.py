from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from gym_arena.api.dependencies import get_current_user, get_db
from gym_arena.schemas import gamification_schemas
from gym_arena.schemas.auth_schemas import TokenData
from gym_arena.services import gamification_service

router = APIRouter()


@router.get("/levels", response_model=List[gamification_schemas.LevelRead])
async def list_levels_endpoint(db: Session = Depends(get_db)):
    return gamification_service.list_levels(db)


@router.get("/me", response_model=gamification_schemas.LevelProgress)
async def my_progress_endpoint(
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    return gamification_service.get_progress(db=db, user_id=current_user.user_id)


@router.post("/xp", response_model=gamification_schemas.XPAwardRead)
async def award_xp_endpoint(
    award_in: gamification_schemas.XPAwardRequest,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    try:
        award = gamification_service.award_xp(
            db=db, user_id=current_user.user_id, amount=award_in.amount, source=award_in.source
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return gamification_schemas.XPAwardRead(
        amount=award.amount,
        source=award.source,
        stats=gamification_schemas.UserStatsRead.model_validate(award.stats),
        leveled_up=award.leveled_up,
        new_level=gamification_schemas.LevelRead.model_validate(award.new_level) if award.new_level else None,
    )


@router.post("/achievements/check", response_model=gamification_schemas.AchievementCheckResult)
async def check_achievements_endpoint(
    check_in: gamification_schemas.AchievementCheckRequest,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    unlocked = gamification_service.check_achievements(
        db=db, user_id=current_user.user_id, condition_type=check_in.condition_type, value=check_in.value
    )
    return {"unlocked": unlocked}


@router.get("/achievements", response_model=List[gamification_schemas.AchievementRead])
async def list_achievements_endpoint(db: Session = Depends(get_db)):
    return gamification_service.list_achievements(db)


@router.get("/me/achievements", response_model=List[gamification_schemas.UnlockedAchievementRead])
async def my_achievements_endpoint(
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    """Trophies the caller has unlocked, oldest first."""
    return gamification_service.list_user_achievements(db=db, user_id=current_user.user_id)
