from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, JSON, Text
from datetime import datetime
from typing import List, Optional
from ulingo.database import Base


class Level(Base):
    __tablename__ = 'levels'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    level_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False, default='')
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    quizzes: Mapped[List[dict]] = mapped_column(JSON, default=list)  # [{question, options, correct, audio}]
    pronunciations: Mapped[List[dict]] = mapped_column(JSON, default=list)  # [{word, pinyin, translation, tips}]
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
