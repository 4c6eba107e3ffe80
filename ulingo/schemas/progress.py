from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional, Set


class UserProgress(BaseModel):
    streak: int = Field(0, ge=0)
    last_access_date: datetime
    current_level: int = Field(1, ge=1)
    completed_levels: Set[int] = set()
    achievements: Set[str] = set()

    class Config:
        from_attributes = True


class ProgressResponse(BaseModel):
    streak: int
    last_access_date: datetime
    current_level: int
    completed_levels: List[int]
    achievements: List[str]

    @classmethod
    def from_progress(cls, progress: UserProgress) -> "ProgressResponse":
        return cls(
            streak=progress.streak,
            last_access_date=progress.last_access_date,
            current_level=progress.current_level,
            completed_levels=sorted(progress.completed_levels),
            achievements=sorted(progress.achievements),
        )


class VisitResult(BaseModel):
    previous_streak: int
    progress: ProgressResponse
    new_achievements: List[str] = []


class CompletionResult(BaseModel):
    level_id: int
    score: int
    total: int
    outcome: str  # "pass" | "effort"
    message: str
    first_completion: bool
    unlocked_level: Optional[int] = None
    new_achievements: List[str] = []
    progress: ProgressResponse


class LeaderboardEntry(BaseModel):
    username: str
    name: str
    completed: int
    streak: int


class DailyRegistrations(BaseModel):
    day: date
    count: int


class RegistrationReport(BaseModel):
    period_days: int
    total_registrations: int
    recent_registrations: int
    average_per_day: float
    per_day: List[DailyRegistrations]


class PlatformStats(BaseModel):
    total_students: int
    total_levels: int
    active_learners: int
    average_completion_rate: float
    leaderboard: List[LeaderboardEntry]
    registrations: RegistrationReport
