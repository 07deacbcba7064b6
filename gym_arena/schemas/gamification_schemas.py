from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

class LevelRead(BaseModel):
    level_num: int
    xp_required: int
    title: str

    class Config:
        from_attributes = True

class UserStatsRead(BaseModel):
    user_id: str
    current_xp: int
    current_level: int
    total_xp_earned: int

    class Config:
        from_attributes = True

class LevelProgress(BaseModel):
    stats: UserStatsRead
    current_level: Optional[LevelRead] = None
    next_level: Optional[LevelRead] = None
    xp_to_next_level: int
    xp_progress: float # percent of the way to next_level

class XPAwardRequest(BaseModel):
    amount: int = Field(gt=0)
    source: str = Field(min_length=1, max_length=100)

class XPAwardRead(BaseModel):
    amount: int
    source: str
    stats: UserStatsRead
    leveled_up: bool
    new_level: Optional[LevelRead] = None

class AchievementRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    condition_type: str
    condition_value: int
    xp_reward: int

    class Config:
        from_attributes = True

class AchievementCheckRequest(BaseModel):
    condition_type: str
    value: int = Field(ge=0)

class UnlockedAchievementRead(BaseModel):
    achievement: AchievementRead
    unlocked_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AchievementCheckResult(BaseModel):
    unlocked: List[AchievementRead]
