from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from gym_arena.services.bracket_geometry import ALLOWED_BRACKET_SIZES

class TournamentBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    start_date: datetime
    max_participants: int = 8

class TournamentCreate(TournamentBase):
    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Name must not be blank")
        return v.strip()

    @field_validator("max_participants")
    @classmethod
    def supported_bracket_size(cls, v):
        if v not in ALLOWED_BRACKET_SIZES:
            raise ValueError(f"max_participants must be one of {ALLOWED_BRACKET_SIZES}")
        return v

class TournamentRead(TournamentBase):
    id: str
    status: str
    created_by: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TournamentSummary(TournamentRead):
    participant_count: int = 0
    total_rounds: int

class ParticipantRead(BaseModel):
    tournament_id: str
    user_id: str
    seed_number: int
    joined_at: Optional[datetime] = None
    full_name: Optional[str] = None

    class Config:
        from_attributes = True

class RepairResult(BaseModel):
    tournament_id: str
    slots_filled: int
