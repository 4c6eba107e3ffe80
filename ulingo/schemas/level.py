from pydantic import BaseModel, Field, model_validator
from typing import Any, List, Optional


class Quiz(BaseModel):
    question: str = ""
    options: List[str] = []
    correct: str = ""
    audio: str = ""  # text sent to speech synthesis


class PronunciationItem(BaseModel):
    word: str = ""
    pinyin: str = ""
    translation: str = ""
    tips: str = ""


class QuizIn(Quiz):
    """Quiz as authored by an admin: the correct answer has to be one of the options"""

    @model_validator(mode="after")
    def check_correct_option(self):
        if not self.options:
            raise ValueError("quiz needs at least one option")
        if self.correct not in self.options:
            raise ValueError(f"correct answer {self.correct!r} is not one of the options")
        return self


class LevelBase(BaseModel):
    level_id: int = Field(..., ge=1)
    title: str
    description: Optional[str] = None


class LevelCreate(LevelBase):
    quizzes: List[QuizIn] = []
    pronunciations: List[PronunciationItem] = []


class LevelUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    quizzes: Optional[List[QuizIn]] = None
    pronunciations: Optional[List[PronunciationItem]] = None


def _entries(raw: Any) -> List[dict]:
    if not isinstance(raw, list):
        return []
    return [entry for entry in raw if isinstance(entry, dict)]


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _strings(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, str)]


class LevelContent(LevelBase):
    """
    Level as read by the engine.

    Stored documents are authored by hand, so reading never fails on a
    missing or malformed field: it falls back to empty values instead.
    """
    level_id: int = 0
    title: str = ""
    quizzes: List[Quiz] = []
    pronunciations: List[PronunciationItem] = []

    @classmethod
    def from_document(cls, doc: dict) -> "LevelContent":
        quizzes = [
            Quiz(
                question=_text(q.get("question")),
                options=_strings(q.get("options")),
                correct=_text(q.get("correct")),
                audio=_text(q.get("audio")),
            )
            for q in _entries(doc.get("quizzes"))
        ]
        pronunciations = [
            PronunciationItem(
                word=_text(p.get("word")),
                pinyin=_text(p.get("pinyin")),
                translation=_text(p.get("translation")),
                tips=_text(p.get("tips")),
            )
            for p in _entries(doc.get("pronunciations"))
        ]
        level_id = doc.get("level_id")
        return cls(
            level_id=level_id if isinstance(level_id, int) and level_id > 0 else 0,
            title=_text(doc.get("title")),
            description=doc.get("description") if isinstance(doc.get("description"), str) else None,
            quizzes=quizzes,
            pronunciations=pronunciations,
        )

    @classmethod
    def from_model(cls, level) -> "LevelContent":
        return cls.from_document({
            "level_id": level.level_id,
            "title": level.title,
            "description": level.description,
            "quizzes": level.quizzes,
            "pronunciations": level.pronunciations,
        })


class LevelSummary(LevelBase):
    quiz_count: int
    pronunciation_count: int


class AdminLevelSummary(LevelSummary):
    students_reached: int  # learners whose gate is at or past this level


class RoadmapEntry(LevelSummary):
    completed: bool
    current: bool
    locked: bool


class QuizPrompt(BaseModel):
    question: str
    options: List[str]
    audio: str


class LevelDetail(LevelBase):
    """Level as sent to the learner: no answers"""
    level_id: int
    quizzes: List[QuizPrompt] = []
    pronunciations: List[PronunciationItem] = []

    @classmethod
    def from_content(cls, content: LevelContent) -> "LevelDetail":
        return cls(
            level_id=content.level_id,
            title=content.title,
            description=content.description,
            quizzes=[QuizPrompt(question=q.question, options=q.options, audio=q.audio) for q in content.quizzes],
            pronunciations=content.pronunciations,
        )
