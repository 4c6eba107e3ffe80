"""
Learner progress persistence

Every change is a read-modify-write of the progress columns on ``users``,
written back as one UPDATE guarded by the row's ``version``. If another
writer got there first the whole cycle is retried on fresh data, so the
streak and its date, or the completed set and the gate, always move
together.
"""
import logging
from datetime import datetime
from typing import Callable, Optional, Tuple, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ulingo.config import get_settings
from ulingo.exceptions import ConcurrentUpdateError, NotFoundError, StoreError
from ulingo.models.user import User
from ulingo.schemas.progress import (
    CompletionResult,
    ProgressResponse,
    UserProgress,
    VisitResult,
)
from ulingo.services import progression

settings = get_settings()
logger = logging.getLogger(__name__)

T = TypeVar("T")


def progress_from_user(user: User) -> UserProgress:
    """Build the engine view of a user row, tolerating empty / odd columns"""
    completed = user.completed_levels if isinstance(user.completed_levels, list) else []
    achievements = user.achievements if isinstance(user.achievements, list) else []
    return UserProgress(
        streak=max(user.streak or 0, 0),
        last_access_date=user.last_access_date or datetime.utcnow(),
        current_level=max(user.current_level or 1, 1),
        completed_levels={level for level in completed if isinstance(level, int)},
        achievements={badge for badge in achievements if isinstance(badge, str)},
    )


def progress_columns(progress: UserProgress) -> dict:
    return {
        "streak": progress.streak,
        "last_access_date": progress.last_access_date,
        "current_level": progress.current_level,
        "completed_levels": sorted(progress.completed_levels),
        "achievements": sorted(progress.achievements),
    }


async def get_user(db: AsyncSession, user_id: int) -> User:
    try:
        result = await db.execute(
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        raise StoreError(f"Could not load learner {user_id}") from e

    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


async def get_user_progress(db: AsyncSession, user_id: int) -> UserProgress:
    """Получить прогресс пользователя"""
    user = await get_user(db, user_id)
    return progress_from_user(user)


async def _compare_and_swap(db: AsyncSession, user_id: int, version: int, progress: UserProgress) -> bool:
    result = await db.execute(
        update(User)
        .where(User.id == user_id, User.version == version)
        .values(**progress_columns(progress), version=version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        return False
    await db.commit()
    return True


async def modify_progress(
    db: AsyncSession,
    user_id: int,
    change: Callable[[UserProgress], Tuple[UserProgress, T]],
) -> Tuple[UserProgress, UserProgress, T]:
    """
    Apply ``change`` to the learner's progress and persist it atomically

    Args:
        change: pure function returning (new_progress, extra)

    Returns:
        (before, after, extra) from the attempt that got written

    Raises:
        NotFoundError: no such learner
        ConcurrentUpdateError: lost the race on every attempt
        StoreError: the database failed; nothing was written
    """
    attempts = max(settings.PROGRESS_WRITE_RETRIES, 1)

    for attempt in range(1, attempts + 1):
        user = await get_user(db, user_id)
        before = progress_from_user(user)
        after, extra = change(before)

        if after == before:
            return before, after, extra

        try:
            if await _compare_and_swap(db, user_id, user.version, after):
                return before, after, extra
        except SQLAlchemyError as e:
            await db.rollback()
            raise StoreError(f"Could not save progress for learner {user_id}") from e

        logger.warning("Progress of user %s changed concurrently (attempt %s/%s)", user_id, attempt, attempts)

    raise ConcurrentUpdateError(f"Progress of learner {user_id} is being updated elsewhere, try again")


async def record_visit(db: AsyncSession, user_id: int, now: Optional[datetime] = None) -> VisitResult:
    """Streak evaluation for a home screen visit"""
    now = now or datetime.utcnow()

    def change(progress: UserProgress):
        updated = progression.apply_streak(progress, now)
        return progression.award_achievements(updated)

    before, after, new_badges = await modify_progress(db, user_id, change)

    if after.streak != before.streak:
        logger.info("User %s streak %s -> %s", user_id, before.streak, after.streak)

    return VisitResult(
        previous_streak=before.streak,
        progress=ProgressResponse.from_progress(after),
        new_achievements=sorted(new_badges),
    )


async def complete_level(
    db: AsyncSession,
    user_id: int,
    level_id: int,
    score: int,
    total: int,
) -> CompletionResult:
    """
    Отметить уровень как пройденный

    Called once per finished quiz. Safe to call again with the same level:
    the completed set does not grow and the gate does not move twice.
    """
    def change(progress: UserProgress):
        updated = progression.apply_level_completion(progress, level_id)
        return progression.award_achievements(updated)

    before, after, new_badges = await modify_progress(db, user_id, change)

    unlocked_level = after.current_level if after.current_level > before.current_level else None
    first_completion = level_id not in before.completed_levels
    if unlocked_level:
        logger.info("User %s finished level %s, unlocked level %s", user_id, level_id, unlocked_level)
    else:
        logger.info("User %s finished level %s (score %s/%s)", user_id, level_id, score, total)

    outcome = progression.classify_score(score, total)
    return CompletionResult(
        level_id=level_id,
        score=score,
        total=total,
        outcome=outcome,
        message=progression.result_message(outcome),
        first_completion=first_completion,
        unlocked_level=unlocked_level,
        new_achievements=sorted(new_badges),
        progress=ProgressResponse.from_progress(after),
    )


async def reset_progress(db: AsyncSession, user_id: int, now: Optional[datetime] = None) -> ProgressResponse:
    """Back to a fresh account: level 1, nothing completed, no streak, no badges"""
    now = now or datetime.utcnow()

    def change(progress: UserProgress):
        return progression.initial_progress(now), None

    _, after, _ = await modify_progress(db, user_id, change)
    logger.info("User %s reset their progress", user_id)
    return ProgressResponse.from_progress(after)
