from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, DateTime, JSON
from datetime import datetime
from typing import List
from ulingo.database import Base


class User(Base):
    __tablename__ = 'users'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, default='Student')
    selected_language: Mapped[str] = mapped_column(String, default='mandarin')
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Progress
    streak: Mapped[int] = mapped_column(Integer, default=0)
    last_access_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    current_level: Mapped[int] = mapped_column(Integer, default=1)
    completed_levels: Mapped[List[int]] = mapped_column(JSON, default=list)
    achievements: Mapped[List[str]] = mapped_column(JSON, default=list)
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # bumped by every progress patch
