"""
Progression rules for a learner

Pure functions over ``UserProgress``: daily streak accounting, level
completion / unlocking, achievement badges and result classification.
Nothing here touches the database; ``progress_service`` loads the record,
applies these rules and writes the patch back.
"""
from datetime import datetime
from typing import Optional, Set, Tuple

from ulingo.config import get_settings
from ulingo.schemas.progress import UserProgress

settings = get_settings()

FIRST_STEP = "first_step"
STREAK_BADGE = "streak_7"
LEVELS_BADGE = "levels_5"
GRADUATE_BADGE = "graduate"

PASS = "pass"
EFFORT = "effort"

RESULT_MESSAGES = {
    PASS: "Great Job!",
    EFFORT: "Good Effort!",
}


def day_difference(last_access_date: datetime, now: datetime) -> int:
    """Whole calendar days between two moments, ignoring the time of day"""
    return (now.date() - last_access_date.date()).days


def evaluate_streak(streak: int, last_access_date: datetime, now: datetime) -> Tuple[int, datetime]:
    """
    Streak after a visit at ``now``

    Returns:
        (new_streak, new_last_access_date)

    Same day and negative differences (device clock moved back) leave the
    streak alone, the next day extends it, a longer gap starts a new streak
    at 1. The access date always moves to ``now``.
    """
    diff = day_difference(last_access_date, now)

    if diff == 1:
        streak += 1
    elif diff > 1:
        streak = 1

    return streak, now


def apply_streak(progress: UserProgress, now: datetime) -> UserProgress:
    streak, last_access_date = evaluate_streak(progress.streak, progress.last_access_date, now)
    return progress.model_copy(update={"streak": streak, "last_access_date": last_access_date})


def apply_level_completion(progress: UserProgress, level_id: int) -> UserProgress:
    """
    Record a finished quiz for ``level_id``

    The level joins ``completed_levels`` (a replay changes nothing) and the
    gate moves forward only when the learner just finished the level it was
    sitting on.
    """
    completed = set(progress.completed_levels)
    completed.add(level_id)

    current_level = progress.current_level
    if level_id == current_level:
        current_level += 1

    return progress.model_copy(update={
        "completed_levels": completed,
        "current_level": current_level,
    })


def is_unlocked(progress: UserProgress, level_id: int) -> bool:
    return level_id <= progress.current_level


def evaluate_achievements(progress: UserProgress) -> Set[str]:
    earned = set()
    completed = len(progress.completed_levels)

    if completed >= 1:
        earned.add(FIRST_STEP)
    if progress.streak >= settings.STREAK_BADGE_DAYS:
        earned.add(STREAK_BADGE)
    if completed >= settings.LEVELS_BADGE_COUNT:
        earned.add(LEVELS_BADGE)
    if completed >= settings.GRADUATE_BADGE_COUNT:
        earned.add(GRADUATE_BADGE)

    return earned


def award_achievements(progress: UserProgress) -> Tuple[UserProgress, Set[str]]:
    """Union earned badges into the record; badges are never taken away here"""
    new_badges = evaluate_achievements(progress) - progress.achievements
    if not new_badges:
        return progress, set()
    updated = progress.model_copy(update={"achievements": progress.achievements | new_badges})
    return updated, new_badges


def initial_progress(now: datetime) -> UserProgress:
    """Progress of a fresh account; also what a reset goes back to"""
    return UserProgress(
        streak=0,
        last_access_date=now,
        current_level=1,
        completed_levels=set(),
        achievements=set(),
    )


def classify_score(score: int, total: int, threshold: Optional[float] = None) -> str:
    """Purely presentational: completion unlocks the next level either way"""
    if threshold is None:
        threshold = settings.PASS_THRESHOLD
    if total <= 0:
        return EFFORT
    return PASS if score / total >= threshold else EFFORT


def result_message(outcome: str) -> str:
    return RESULT_MESSAGES.get(outcome, RESULT_MESSAGES[EFFORT])
