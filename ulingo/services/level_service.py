"""
Level content: reading, the learner roadmap and admin authoring
"""
import logging
from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ulingo.exceptions import InvalidContentError, NotFoundError, StoreError
from ulingo.models.level import Level
from ulingo.models.user import User
from ulingo.schemas.level import (
    AdminLevelSummary,
    LevelContent,
    LevelCreate,
    LevelSummary,
    LevelUpdate,
    RoadmapEntry,
)
from ulingo.schemas.progress import UserProgress
from ulingo.services import stats_service

logger = logging.getLogger(__name__)


async def _find_level(db: AsyncSession, level_id: int) -> Level | None:
    try:
        result = await db.execute(select(Level).where(Level.level_id == level_id))
        return result.scalar_one_or_none()
    except SQLAlchemyError as e:
        raise StoreError(f"Could not load level {level_id}") from e


async def get_level(db: AsyncSession, level_id: int) -> Level:
    level = await _find_level(db, level_id)
    if not level:
        raise NotFoundError(f"Level {level_id} not found")
    return level


async def get_level_content(db: AsyncSession, level_id: int) -> LevelContent:
    """Level as the quiz / practice screens see it, read once per level entry"""
    return LevelContent.from_model(await get_level(db, level_id))


async def list_levels(db: AsyncSession) -> List[Level]:
    try:
        result = await db.execute(select(Level).order_by(Level.level_id))
        return list(result.scalars().all())
    except SQLAlchemyError as e:
        raise StoreError("Could not load levels") from e


def summarize(level: Level) -> LevelSummary:
    content = LevelContent.from_model(level)
    return LevelSummary(
        level_id=level.level_id,
        title=content.title,
        description=content.description,
        quiz_count=len(content.quizzes),
        pronunciation_count=len(content.pronunciations),
    )


async def list_admin_summaries(db: AsyncSession) -> List[AdminLevelSummary]:
    """Levels for the admin list, each with how many students have reached it"""
    gate_counts = await stats_service.count_students_reached(db)
    return [
        AdminLevelSummary(
            **summarize(level).model_dump(),
            students_reached=stats_service.students_reached(gate_counts, level.level_id),
        )
        for level in await list_levels(db)
    ]


async def get_roadmap(db: AsyncSession, progress: UserProgress) -> List[RoadmapEntry]:
    """All levels in order, each marked completed / current / locked for this learner"""
    roadmap = []
    for level in await list_levels(db):
        summary = summarize(level)
        roadmap.append(RoadmapEntry(
            **summary.model_dump(),
            completed=level.level_id in progress.completed_levels,
            current=level.level_id == progress.current_level,
            locked=level.level_id > progress.current_level,
        ))
    return roadmap


async def create_level(db: AsyncSession, level_create: LevelCreate) -> Level:
    if await _find_level(db, level_create.level_id):
        raise InvalidContentError(f"Level {level_create.level_id} already exists")

    level = Level(
        level_id=level_create.level_id,
        title=level_create.title.strip(),
        description=(level_create.description or "").strip() or None,
        quizzes=[quiz.model_dump() for quiz in level_create.quizzes],
        pronunciations=[item.model_dump() for item in level_create.pronunciations],
    )
    try:
        db.add(level)
        await db.commit()
        await db.refresh(level)
    except IntegrityError as e:
        # another admin created the same level between the check and the insert
        await db.rollback()
        raise InvalidContentError(f"Level {level_create.level_id} already exists") from e
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreError(f"Could not save level {level_create.level_id}") from e

    logger.info("Level %s created (%s quizzes)", level.level_id, len(level.quizzes))
    return level


async def update_level(db: AsyncSession, level_id: int, level_update: LevelUpdate) -> Level:
    level = await get_level(db, level_id)

    if level_update.title is not None:
        level.title = level_update.title.strip()
    if level_update.description is not None:
        level.description = level_update.description.strip() or None
    if level_update.quizzes is not None:
        level.quizzes = [quiz.model_dump() for quiz in level_update.quizzes]
    if level_update.pronunciations is not None:
        level.pronunciations = [item.model_dump() for item in level_update.pronunciations]
    level.updated_at = datetime.utcnow()

    try:
        await db.commit()
        await db.refresh(level)
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreError(f"Could not save level {level_id}") from e

    logger.info("Level %s updated", level_id)
    return level


async def delete_level(db: AsyncSession, level_id: int) -> int:
    """
    Delete a level and repair every learner who had completed it

    The level leaves their completed set and, if their gate was past it,
    the gate moves back by one so it keeps pointing at the same content.
    Level and learner updates are committed together.

    Returns:
        int: number of learners updated
    """
    level = await get_level(db, level_id)

    try:
        await db.delete(level)

        result = await db.execute(select(User))
        updated = 0
        for user in result.scalars().all():
            completed = list(user.completed_levels or [])
            if level_id not in completed:
                continue
            completed.remove(level_id)
            user.completed_levels = completed
            if (user.current_level or 1) > level_id:
                user.current_level -= 1
            user.version = (user.version or 0) + 1
            updated += 1

        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreError(f"Could not delete level {level_id}") from e

    logger.info("Level %s deleted, %s learners updated", level_id, updated)
    return updated
