import datetime

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship

from gym_arena.core.database import Base


class Participant(Base):
    __tablename__ = "tournament_participants"
    __table_args__ = (
        UniqueConstraint("tournament_id", "user_id", name="uq_participant_user"),
        UniqueConstraint("tournament_id", "seed_number", name="uq_participant_seed"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tournament_id = Column(String(36), ForeignKey("tournaments.id"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    seed_number = Column(Integer, nullable=False) # 1..max_participants, in join order
    joined_at = Column(DateTime, default=datetime.datetime.utcnow)

    tournament = relationship("Tournament", back_populates="participants")
