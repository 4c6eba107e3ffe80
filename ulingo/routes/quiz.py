from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ulingo.database import get_db
from ulingo.models.user import User
from ulingo.routes.deps import get_current_user
from ulingo.schemas.quiz import QuizSessionView, SelectAnswer
from ulingo.services import session_service
from ulingo.services.session_registry import SessionRegistry, get_sessions

router = APIRouter(prefix="/quiz", tags=["quiz"])


@router.post("/{level_id}/start", response_model=QuizSessionView, status_code=201)
async def start_quiz(
    level_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    registry: SessionRegistry = Depends(get_sessions)
):
    """Начать тест по уровню"""
    session_id = await session_service.start_quiz(db, registry, user.id, level_id)
    return session_service.get_quiz(registry, user.id, session_id)


@router.get("/sessions/{session_id}", response_model=QuizSessionView)
async def get_quiz(
    session_id: str,
    user: User = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_sessions)
):
    return session_service.get_quiz(registry, user.id, session_id)


@router.post("/sessions/{session_id}/select", response_model=QuizSessionView)
async def select_answer(
    session_id: str,
    answer: SelectAnswer,
    user: User = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_sessions)
):
    return await session_service.select_answer(registry, user.id, session_id, answer.option)


@router.post("/sessions/{session_id}/submit", response_model=QuizSessionView)
async def submit_answer(
    session_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    registry: SessionRegistry = Depends(get_sessions)
):
    """Проверить ответ; после последнего вопроса сохраняет прохождение уровня"""
    return await session_service.submit_answer(db, registry, user.id, session_id)


@router.delete("/sessions/{session_id}", status_code=204)
async def abandon_quiz(
    session_id: str,
    user: User = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_sessions)
):
    """Leaving the quiz screen without finishing; nothing is saved"""
    session_service.abandon_quiz(registry, user.id, session_id)
