from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from gym_arena.core.config import settings

DATABASE_URL = settings.database_url
IS_SQLITE = DATABASE_URL.startswith("sqlite")

if IS_SQLITE:
    # Development: SQLite (no connection pooling)
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=20,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db():
    # Importing the models registers every table on Base.metadata
    import gym_arena.models  # noqa: F401
    from gym_arena.services.gamification_service import seed_catalogue

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_catalogue(db)
    finally:
        db.close()
