from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ulingo.database import get_db
from ulingo.models.user import User
from ulingo.routes.deps import get_current_user
from ulingo.schemas.progress import ProgressResponse, VisitResult
from ulingo.services import progress_service

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("/", response_model=ProgressResponse)
async def get_progress(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Текущий прогресс: серия, уровень, пройденные уровни, награды"""
    progress = await progress_service.get_user_progress(db, user.id)
    return ProgressResponse.from_progress(progress)


@router.post("/visit", response_model=VisitResult)
async def record_visit(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Home screen visit: evaluates the daily streak"""
    return await progress_service.record_visit(db, user.id)


@router.post("/reset", response_model=ProgressResponse)
async def reset_progress(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await progress_service.reset_progress(db, user.id)
