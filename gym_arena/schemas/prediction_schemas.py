from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class PredictionCreate(BaseModel):
    predicted_winner_id: str

class PredictionRead(BaseModel):
    id: int
    user_id: str
    match_id: str
    predicted_winner_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class PredictionSummary(BaseModel):
    user_id: str
    tournament_id: Optional[str] = None
    total: int
    decided: int
    correct: int
    accuracy: float
