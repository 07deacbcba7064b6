from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from gym_arena.core import security
from gym_arena.core.config import settings
from gym_arena.core.database import SessionLocal
from gym_arena.core.exceptions import ArenaError
from gym_arena.schemas.auth_schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.AUTH_TOKEN_URL)
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.AUTH_TOKEN_URL, auto_error=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(token: str = Depends(oauth2_scheme)) -> TokenData:
    return security.verify_token(token, _credentials_exception())


def get_optional_user(token: Optional[str] = Depends(optional_oauth2_scheme)) -> Optional[TokenData]:
    """Anonymous callers can read brackets; a bad token is still rejected."""
    if not token:
        return None
    return security.verify_token(token, _credentials_exception())


def to_http_exception(exc: ArenaError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))
