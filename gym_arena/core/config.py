from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./gym_arena.db"
    SECRET_KEY: str = "YOUR_SECRET_KEY_HERE"
    JWT_ALGORITHM: str = "HS256"
    AUTH_TOKEN_URL: str = "/auth/token" # Issued by the gym's auth service, not by this API
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        # SQLAlchemy requires postgresql://, hosted providers often hand out postgres://
        if self.DATABASE_URL.startswith("postgres://"):
            return self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
        return self.DATABASE_URL

settings = Settings()
