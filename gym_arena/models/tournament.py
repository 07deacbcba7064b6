import datetime
import uuid

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship

from gym_arena.core.database import Base

STATUS_UPCOMING = "upcoming"
STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"


class Tournament(Base):
    __tablename__ = "tournaments"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime, nullable=False)
    status = Column(String, default=STATUS_UPCOMING, nullable=False) # upcoming -> active -> completed
    max_participants = Column(Integer, nullable=False) # 4, 8, 16 or 32
    created_by = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    participants = relationship(
        "Participant", back_populates="tournament", order_by="Participant.seed_number",
        cascade="all, delete-orphan",
    )
    matches = relationship("Match", back_populates="tournament", cascade="all, delete-orphan")
