import uuid

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship

from gym_arena.core.database import Base


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("tournament_id", "round_number", "match_number", name="uq_match_slot"),
    )

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    tournament_id = Column(String(36), ForeignKey("tournaments.id"), nullable=False, index=True)
    round_number = Column(Integer, nullable=False)
    match_number = Column(Integer, nullable=False)
    player_1_id = Column(String(36), nullable=True)
    player_2_id = Column(String(36), nullable=True)
    winner_id = Column(String(36), nullable=True)
    scheduled_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    tournament = relationship("Tournament", back_populates="matches")
    predictions = relationship("Prediction", back_populates="match", cascade="all, delete-orphan")

    # Player ids are owned by the external auth system, so there are no
    # foreign keys to profiles here. Names are joined in at read time.
