import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from gym_arena.models.gamification import Level, UserStats, Achievement, UserAchievement

logger = logging.getLogger("gym_arena")

# XP rewards configuration
XP_REWARDS = {
    "VIDEO_COMPLETED": 50,
    "PURCHASE_MADE": 100,
    "POST_CREATED": 10,
    "PREDICTION_MADE": 5,
    "TOURNAMENT_WON": 250,
}


# Ladder and trophies installed on a fresh database by seed_catalogue
DEFAULT_LEVELS = [
    (1, 0, "Rookie"),
    (2, 100, "Regular"),
    (3, 250, "Committed"),
    (4, 500, "Athlete"),
    (5, 1000, "Veteran"),
    (6, 2000, "Elite"),
    (7, 4000, "Legend"),
]

DEFAULT_ACHIEVEMENTS = [
    # name, description, icon, condition_type, condition_value, xp_reward
    ("First Post", "Share your first post with the community", "message-circle", "posts_created", 1, 20),
    ("Storyteller", "Share 25 posts", "megaphone", "posts_created", 25, 100),
    ("First Workout Video", "Finish your first workout video", "play", "videos_completed", 1, 25),
    ("Dedicated", "Finish 20 workout videos", "flame", "videos_completed", 20, 150),
    ("First Purchase", "Make your first shop purchase", "shopping-bag", "purchases_made", 1, 25),
    ("Oracle in Training", "Make your first bracket prediction", "eye", "predictions_made", 1, 10),
    ("Oracle", "Make 25 bracket predictions", "sparkles", "predictions_made", 25, 75),
    ("Champion", "Win an arena tournament", "trophy", "tournaments_won", 1, 100),
    ("Dynasty", "Win 5 arena tournaments", "crown", "tournaments_won", 5, 500),
]

@dataclass
class XPAward:
    amount: int
    source: str
    stats: UserStats
    leveled_up: bool
    new_level: Optional[Level] = None


def list_levels(db: Session) -> List[Level]:
    return db.query(Level).order_by(Level.level_num.asc()).all()


def level_for_xp(levels: List[Level], xp: int) -> Optional[Level]:
    """Highest level whose threshold the given XP has reached."""
    reached = [level for level in levels if xp >= level.xp_required]
    if not reached:
        return None
    return max(reached, key=lambda level: level.level_num)


def level_progress(levels: List[Level], stats: UserStats) -> dict:
    by_num = {level.level_num: level for level in levels}
    current = by_num.get(stats.current_level)
    upcoming = by_num.get(stats.current_level + 1)
    xp_to_next = upcoming.xp_required - stats.current_xp if upcoming else 0
    if upcoming and current:
        span = upcoming.xp_required - current.xp_required
        progress = (stats.current_xp - current.xp_required) / span * 100 if span > 0 else 100.0
    else:
        progress = 100.0
    return {
        "stats": stats,
        "current_level": current,
        "next_level": upcoming,
        "xp_to_next_level": max(xp_to_next, 0),
        "xp_progress": max(0.0, min(progress, 100.0)),
    }


def get_or_create_stats(db: Session, user_id: str) -> UserStats:
    stats = db.query(UserStats).filter(UserStats.user_id == user_id).first()
    if stats is None:
        stats = UserStats(user_id=user_id, current_xp=0, current_level=1, total_xp_earned=0)
        db.add(stats)
        db.flush()
    return stats


def get_progress(db: Session, user_id: str) -> dict:
    stats = get_or_create_stats(db, user_id)
    db.commit()
    return level_progress(list_levels(db), stats)


def grant_xp(db: Session, user_id: str, amount: int, source: str) -> XPAward:
    """Adds XP inside the caller's transaction. See award_xp for the committing variant."""
    if amount <= 0:
        raise ValueError("XP amount must be positive.")

    stats = get_or_create_stats(db, user_id)
    previous_level = stats.current_level
    stats.current_xp += amount
    stats.total_xp_earned += amount

    reached = level_for_xp(list_levels(db), stats.current_xp)
    if reached is not None and reached.level_num > stats.current_level:
        stats.current_level = reached.level_num
    db.flush()

    leveled_up = stats.current_level > previous_level
    if leveled_up:
        logger.info(f"User {user_id} reached level {stats.current_level} ({source})")
    return XPAward(
        amount=amount,
        source=source,
        stats=stats,
        leveled_up=leveled_up,
        new_level=reached if leveled_up else None,
    )


def award_xp(db: Session, user_id: str, amount: int, source: str) -> XPAward:
    award = grant_xp(db, user_id, amount, source)
    db.commit()
    db.refresh(award.stats)
    return award


def check_achievements(db: Session, user_id: str, condition_type: str, value: int) -> List[Achievement]:
    """Unlocks every achievement of this type the value now satisfies, paying out its XP reward."""
    unlocked_ids = {
        ua.achievement_id
        for ua in db.query(UserAchievement).filter(UserAchievement.user_id == user_id).all()
    }
    eligible = db.query(Achievement).filter(
        Achievement.condition_type == condition_type,
        Achievement.condition_value <= value,
    ).order_by(Achievement.condition_value.asc()).all()

    newly_unlocked = []
    for achievement in eligible:
        if achievement.id in unlocked_ids:
            continue
        db.add(UserAchievement(user_id=user_id, achievement_id=achievement.id))
        if achievement.xp_reward > 0:
            grant_xp(db, user_id, achievement.xp_reward, f"Achievement: {achievement.name}")
        newly_unlocked.append(achievement)

    if newly_unlocked:
        db.commit()
        logger.info(f"User {user_id} unlocked {len(newly_unlocked)} achievement(s) for {condition_type}")
    return newly_unlocked


def list_achievements(db: Session) -> List[Achievement]:
    return db.query(Achievement).order_by(
        Achievement.condition_type.asc(), Achievement.condition_value.asc()
    ).all()


def list_user_achievements(db: Session, user_id: str) -> List[UserAchievement]:
    return db.query(UserAchievement).filter(UserAchievement.user_id == user_id).order_by(
        UserAchievement.unlocked_at.asc()
    ).all()


def seed_catalogue(db: Session) -> Tuple[int, int]:
    """
    Installs the default levels and achievements that are not there yet.
    Existing rows are left untouched, so it is safe on every start.
    Returns (levels_added, achievements_added).
    """
    existing_levels = {num for (num,) in db.query(Level.level_num).all()}
    levels_added = 0
    for level_num, xp_required, title in DEFAULT_LEVELS:
        if level_num in existing_levels:
            continue
        db.add(Level(level_num=level_num, xp_required=xp_required, title=title))
        levels_added += 1

    existing_achievements = {name for (name,) in db.query(Achievement.name).all()}
    achievements_added = 0
    for name, description, icon, condition_type, condition_value, xp_reward in DEFAULT_ACHIEVEMENTS:
        if name in existing_achievements:
            continue
        db.add(Achievement(
            name=name,
            description=description,
            icon=icon,
            condition_type=condition_type,
            condition_value=condition_value,
            xp_reward=xp_reward,
        ))
        achievements_added += 1

    db.commit()
    if levels_added or achievements_added:
        logger.info(f"Seeded {levels_added} level(s) and {achievements_added} achievement(s)")
    return levels_added, achievements_added
