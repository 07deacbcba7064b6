from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from .tournament_schemas import TournamentRead

class PlayerRead(BaseModel):
    id: str
    full_name: Optional[str] = None

class MatchRead(BaseModel):
    id: str
    tournament_id: str
    round_number: int
    match_number: int
    player_1_id: Optional[str] = None
    player_2_id: Optional[str] = None
    winner_id: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    state: str # EMPTY, PENDING or COMPLETE

    class Config:
        from_attributes = True

class BracketMatchRead(MatchRead):
    player_1: Optional[PlayerRead] = None
    player_2: Optional[PlayerRead] = None
    winner: Optional[PlayerRead] = None

class WinnerUpdate(BaseModel):
    winner_id: str

class RoundRead(BaseModel):
    round_number: int
    name: str
    matches: List[BracketMatchRead]

class ViewerPrediction(BaseModel):
    match_id: str
    predicted_winner_id: str

class BracketRead(BaseModel):
    tournament: TournamentRead
    total_rounds: int
    rounds: List[RoundRead]
    champion: Optional[PlayerRead] = None
    predictions: List[ViewerPrediction] = []
