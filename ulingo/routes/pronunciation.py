import base64
import binascii
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ulingo.database import get_db
from ulingo.exceptions import InvalidContentError
from ulingo.models.user import User
from ulingo.routes.deps import get_current_user
from ulingo.schemas.pronunciation import PronunciationSessionView, RecordAttempt
from ulingo.services import session_service
from ulingo.services.pronunciation import PronunciationScorer
from ulingo.services.session_registry import SessionRegistry, get_sessions

router = APIRouter(prefix="/pronunciation", tags=["pronunciation"])


@router.post("/{level_id}/start", response_model=PronunciationSessionView, status_code=201)
async def start_practice(
    level_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    registry: SessionRegistry = Depends(get_sessions)
):
    session_id = await session_service.start_practice(db, registry, user.id, level_id)
    return session_service.get_practice(registry, user.id, session_id)


@router.get("/sessions/{session_id}", response_model=PronunciationSessionView)
async def get_practice(
    session_id: str,
    user: User = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_sessions)
):
    return session_service.get_practice(registry, user.id, session_id)


@router.post("/sessions/{session_id}/record", response_model=PronunciationSessionView)
async def record_attempt(
    session_id: str,
    attempt: Optional[RecordAttempt] = None,
    user: User = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_sessions),
    scorer: PronunciationScorer = Depends(session_service.get_scorer)
):
    """Оценить произношение текущего слова"""
    audio = None
    if attempt and attempt.audio_base64:
        try:
            audio = base64.b64decode(attempt.audio_base64, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidContentError("audio_base64 is not valid base64")
    return await session_service.record_attempt(registry, user.id, session_id, scorer, audio)


@router.post("/sessions/{session_id}/{move}", response_model=PronunciationSessionView)
async def move_practice(
    session_id: str,
    move: Literal["next", "previous", "restart"],
    user: User = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_sessions)
):
    return await session_service.move_practice(registry, user.id, session_id, move)
