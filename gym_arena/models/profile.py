from sqlalchemy import Column, String

from gym_arena.core.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, index=True) # Same id as the auth system's user
    full_name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
