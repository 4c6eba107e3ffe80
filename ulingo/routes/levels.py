from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ulingo.database import get_db
from ulingo.exceptions import LevelLockedError
from ulingo.models.user import User
from ulingo.routes.deps import get_current_user
from ulingo.schemas.level import LevelDetail, RoadmapEntry
from ulingo.services import level_service, progress_service, progression

router = APIRouter(prefix="/levels", tags=["levels"])


@router.get("/roadmap", response_model=List[RoadmapEntry])
async def roadmap(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Карта уровней: пройденные, текущий и закрытые"""
    progress = await progress_service.get_user_progress(db, user.id)
    return await level_service.get_roadmap(db, progress)


@router.get("/{level_id}", response_model=LevelDetail)
async def level_detail(
    level_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    progress = await progress_service.get_user_progress(db, user.id)
    if not progression.is_unlocked(progress, level_id):
        raise LevelLockedError(f"Level {level_id} is locked")
    content = await level_service.get_level_content(db, level_id)
    return LevelDetail.from_content(content)
