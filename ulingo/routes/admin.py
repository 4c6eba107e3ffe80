from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ulingo.database import get_db
from ulingo.models.user import User
from ulingo.routes.deps import get_current_admin
from ulingo.schemas.level import AdminLevelSummary, LevelContent, LevelCreate, LevelUpdate
from ulingo.schemas.progress import PlatformStats
from ulingo.schemas.user import StudentSummary
from ulingo.services import level_service, stats_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/levels", response_model=List[AdminLevelSummary])
async def list_levels(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await level_service.list_admin_summaries(db)


@router.get("/levels/{level_id}", response_model=LevelContent)
async def get_level(
    level_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await level_service.get_level_content(db, level_id)


@router.post("/levels", response_model=LevelContent, status_code=201)
async def create_level(
    level_create: LevelCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Добавить уровень с тестами и произношением"""
    level = await level_service.create_level(db, level_create)
    return LevelContent.from_model(level)


@router.put("/levels/{level_id}", response_model=LevelContent)
async def update_level(
    level_id: int,
    level_update: LevelUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    level = await level_service.update_level(db, level_id, level_update)
    return LevelContent.from_model(level)


@router.delete("/levels/{level_id}")
async def delete_level(
    level_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Удалить уровень и поправить прогресс студентов"""
    updated_students = await level_service.delete_level(db, level_id)
    return {"level_id": level_id, "updated_students": updated_students}


@router.get("/stats", response_model=PlatformStats)
async def platform_stats(
    period: int = Query(30, description="Registration report window in days: 7, 30, 90 or 365"),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await stats_service.get_platform_stats(db, period_days=period)


@router.get("/students", response_model=List[StudentSummary])
async def list_students(
    search: Optional[str] = None,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Список студентов, новые первыми; поиск по имени или логину"""
    return await stats_service.list_students(db, search)
