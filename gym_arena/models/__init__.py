# Import all models here to ensure they are registered with Base.
# Tables are created by gym_arena.core.database.init_db on application startup.
from .profile import Profile
from .tournament import Tournament
from .participant import Participant
from .match import Match
from .prediction import Prediction
from .gamification import Level, UserStats, Achievement, UserAchievement
