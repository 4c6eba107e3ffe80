"""
Quiz and pronunciation sessions over the registry

Opening a level checks the learner's gate, snapshots the level content
into a session and registers it. Finishing a quiz persists the completion
exactly once per session.
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ulingo.exceptions import LevelLockedError
from ulingo.schemas.pronunciation import PronunciationSessionView
from ulingo.schemas.quiz import QuizQuestion, QuizSessionView
from ulingo.services import level_service, progress_service, progression
from ulingo.services.pronunciation import (
    PlaceholderPronunciationScorer,
    PronunciationScorer,
    PronunciationSession,
)
from ulingo.services.quiz_session import QuizSession
from ulingo.services.session_registry import SessionEntry, SessionRegistry

logger = logging.getLogger(__name__)

default_scorer = PlaceholderPronunciationScorer()


def get_scorer() -> PronunciationScorer:
    """FastAPI dependency"""
    return default_scorer


async def _open_level(db: AsyncSession, user_id: int, level_id: int):
    progress = await progress_service.get_user_progress(db, user_id)
    if not progression.is_unlocked(progress, level_id):
        raise LevelLockedError(f"Level {level_id} is locked, finish level {progress.current_level} first")
    return await level_service.get_level_content(db, level_id)


# Quiz -------------------------------------------------------------------

async def start_quiz(db: AsyncSession, registry: SessionRegistry, user_id: int, level_id: int) -> str:
    content = await _open_level(db, user_id, level_id)
    session_id = registry.add(user_id, QuizSession(level_id, content.quizzes))
    logger.debug("User %s started quiz %s for level %s", user_id, session_id, level_id)
    return session_id


def quiz_view(session_id: str, entry: SessionEntry) -> QuizSessionView:
    session: QuizSession = entry.session
    quiz = session.current_quiz
    question = None
    if quiz is not None:
        question = QuizQuestion(
            index=session.current_index,
            total=session.total,
            question=quiz.question,
            options=quiz.options,
            audio=quiz.audio,
        )
    return QuizSessionView(
        session_id=session_id,
        level_id=session.level_id,
        state=session.state.value,
        current_index=session.current_index,
        total=session.total,
        selected_answer=session.selected_answer,
        question=question,
        result=entry.result,
    )


async def select_answer(registry: SessionRegistry, user_id: int, session_id: str, option: str) -> QuizSessionView:
    entry = registry.get(session_id, user_id, QuizSession)
    async with entry.lock:
        entry.session.select_answer(option)
        return quiz_view(session_id, entry)


async def submit_answer(
    db: AsyncSession,
    registry: SessionRegistry,
    user_id: int,
    session_id: str,
) -> QuizSessionView:
    """
    Submit the pending answer

    After the last question the completion is written once; a repeated
    submit returns the stored result. If that write failed, submitting
    again retries it.
    """
    entry = registry.get(session_id, user_id, QuizSession)
    async with entry.lock:
        session: QuizSession = entry.session

        if not session.is_completed:
            session.submit()

        if session.is_completed and entry.result is None:
            entry.result = await progress_service.complete_level(
                db, user_id, session.level_id, session.score, session.total
            )

        return quiz_view(session_id, entry)


def get_quiz(registry: SessionRegistry, user_id: int, session_id: str) -> QuizSessionView:
    return quiz_view(session_id, registry.get(session_id, user_id, QuizSession))


def abandon_quiz(registry: SessionRegistry, user_id: int, session_id: str) -> None:
    registry.get(session_id, user_id, QuizSession)
    registry.discard(session_id)


# Pronunciation ----------------------------------------------------------

async def start_practice(db: AsyncSession, registry: SessionRegistry, user_id: int, level_id: int) -> str:
    content = await _open_level(db, user_id, level_id)
    return registry.add(user_id, PronunciationSession(level_id, content.pronunciations))


def practice_view(session_id: str, entry: SessionEntry) -> PronunciationSessionView:
    session: PronunciationSession = entry.session
    return PronunciationSessionView(
        session_id=session_id,
        level_id=session.level_id,
        state=session.state.value,
        index=session.index,
        total=session.total,
        item=session.current_item,
        last_score=session.last_score,
        feedback=session.feedback,
    )


MOVES = {
    "next": PronunciationSession.next,
    "previous": PronunciationSession.previous,
    "restart": PronunciationSession.restart,
}


async def move_practice(registry: SessionRegistry, user_id: int, session_id: str, move: str) -> PronunciationSessionView:
    entry = registry.get(session_id, user_id, PronunciationSession)
    async with entry.lock:
        MOVES[move](entry.session)
        return practice_view(session_id, entry)


async def record_attempt(
    registry: SessionRegistry,
    user_id: int,
    session_id: str,
    scorer: PronunciationScorer,
    audio: Optional[bytes] = None,
) -> PronunciationSessionView:
    entry = registry.get(session_id, user_id, PronunciationSession)
    async with entry.lock:
        await entry.session.record(scorer, audio)
        return practice_view(session_id, entry)


def get_practice(registry: SessionRegistry, user_id: int, session_id: str) -> PronunciationSessionView:
    return practice_view(session_id, registry.get(session_id, user_id, PronunciationSession))
