from contextlib import asynccontextmanager

from fastapi import FastAPI

from gym_arena.api.endpoints import gamification as gamification_endpoints
from gym_arena.api.endpoints import matches as match_endpoints
from gym_arena.api.endpoints import predictions as prediction_endpoints
from gym_arena.api.endpoints import tournaments as tournament_endpoints
from gym_arena.core.database import init_db
from gym_arena.core.logging_config import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = configure_logging()
    init_db()
    logger.info("Gym Arena API ready")
    yield


app = FastAPI(title="Gym Arena API", lifespan=lifespan)

# Include routers
app.include_router(tournament_endpoints.router, prefix="/tournaments", tags=["Tournaments"])
app.include_router(match_endpoints.router, prefix="/matches", tags=["Matches"])
app.include_router(prediction_endpoints.router, prefix="/predictions", tags=["Predictions"])
app.include_router(gamification_endpoints.router, prefix="/gamification", tags=["Gamification"])


@app.get("/")
async def read_root():
    return {"message": "Gym Arena API"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("gym_arena.main:app", host="0.0.0.0", port=8000, reload=True)
