from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import select, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ulingo.config import get_settings
from ulingo.exceptions import InvalidContentError, StoreError
from ulingo.models.level import Level
from ulingo.models.user import User
from ulingo.schemas.progress import (
    DailyRegistrations,
    LeaderboardEntry,
    PlatformStats,
    RegistrationReport,
)
from ulingo.schemas.user import StudentSummary
from ulingo.services.progress_service import progress_from_user

settings = get_settings()

# 7 days, 30 days, 90 days, "all time" (one year of chart)
REPORT_PERIODS = (7, 30, 90, 365)


async def _students(db: AsyncSession, *where) -> List[User]:
    try:
        result = await db.execute(
            select(User)
            .where(User.is_admin == False, *where)  # noqa: E712
            .order_by(User.created_at.desc(), User.id.desc())
        )
        return list(result.scalars().all())
    except SQLAlchemyError as e:
        raise StoreError("Could not load students") from e


def registration_report(students: List[User], period_days: int, now: Optional[datetime] = None) -> RegistrationReport:
    """
    Регистрации по дням за период

    Every day of the period gets a bucket, empty days included, so the
    chart shows gaps. Only sign-ups inside the period are counted per day;
    ``total_registrations`` counts everyone.
    """
    if period_days not in REPORT_PERIODS:
        raise InvalidContentError(f"period must be one of {', '.join(map(str, REPORT_PERIODS))} days")

    today = (now or datetime.utcnow()).date()
    buckets: Dict = {today - timedelta(days=i): 0 for i in range(period_days - 1, -1, -1)}
    for student in students:
        if student.created_at is None:
            continue
        day = student.created_at.date()
        if day in buckets:
            buckets[day] += 1

    recent = sum(buckets.values())
    return RegistrationReport(
        period_days=period_days,
        total_registrations=len(students),
        recent_registrations=recent,
        average_per_day=round(recent / period_days, 2),
        per_day=[DailyRegistrations(day=day, count=count) for day, count in buckets.items()],
    )


async def get_platform_stats(db: AsyncSession, period_days: int = 30, now: Optional[datetime] = None) -> PlatformStats:
    """Статистика для админ-панели"""
    students = await _students(db)
    try:
        total_levels = await db.scalar(select(func.count(Level.id))) or 0
    except SQLAlchemyError as e:
        raise StoreError("Could not load statistics") from e

    total_students = len(students)
    completed_counts = {s.id: len(s.completed_levels or []) for s in students}
    total_completed = sum(completed_counts.values())

    # completed lessons / (students x available lessons)
    if total_students > 0 and total_levels > 0:
        completion_rate = round(total_completed / (total_students * total_levels) * 100, 1)
    else:
        completion_rate = 0.0

    ranked = sorted(students, key=lambda s: (-completed_counts[s.id], s.username))
    leaderboard = [
        LeaderboardEntry(
            username=s.username,
            name=s.name,
            completed=completed_counts[s.id],
            streak=s.streak or 0,
        )
        for s in ranked[:settings.LEADERBOARD_SIZE]
    ]

    return PlatformStats(
        total_students=total_students,
        total_levels=total_levels,
        active_learners=sum(1 for s in students if (s.streak or 0) > 0),
        average_completion_rate=completion_rate,
        leaderboard=leaderboard,
        registrations=registration_report(students, period_days, now),
    )


async def list_students(db: AsyncSession, search: Optional[str] = None) -> List[StudentSummary]:
    """Students newest first, optionally filtered by name or username (case-insensitive)"""
    where = []
    query = (search or "").strip().lower()
    if query:
        pattern = f"%{query}%"
        where.append(or_(func.lower(User.name).like(pattern), func.lower(User.username).like(pattern)))

    summaries = []
    for student in await _students(db, *where):
        progress = progress_from_user(student)
        summaries.append(StudentSummary(
            id=student.id,
            username=student.username,
            name=student.name,
            selected_language=student.selected_language,
            created_at=student.created_at,
            streak=progress.streak,
            current_level=progress.current_level,
            completed_levels=sorted(progress.completed_levels),
            achievements=sorted(progress.achievements),
            last_access_date=student.last_access_date,
        ))
    return summaries


async def count_students_reached(db: AsyncSession) -> Dict[int, int]:
    """How many students have their gate at each ``current_level``"""
    try:
        result = await db.execute(
            select(User.current_level, func.count(User.id))
            .where(User.is_admin == False)  # noqa: E712
            .group_by(User.current_level)
        )
        rows = result.all()
    except SQLAlchemyError as e:
        raise StoreError("Could not load statistics") from e

    gate_counts: Dict[int, int] = {}
    for level, count in rows:
        gate_counts[level or 1] = gate_counts.get(level or 1, 0) + count
    return gate_counts


def students_reached(gate_counts: Dict[int, int], level_id: int) -> int:
    """Students whose ``current_level`` is at or past ``level_id``"""
    return sum(count for gate, count in gate_counts.items() if gate >= level_id)
