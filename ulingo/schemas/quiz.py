from pydantic import BaseModel
from typing import List, Optional

from ulingo.schemas.progress import CompletionResult


class SelectAnswer(BaseModel):
    option: str


class QuizQuestion(BaseModel):
    """Question as shown to the learner (the correct answer stays on the server)"""
    index: int
    total: int
    question: str
    options: List[str]
    audio: str


class QuizSessionView(BaseModel):
    session_id: str
    level_id: int
    state: str
    current_index: int
    total: int
    selected_answer: Optional[str] = None
    question: Optional[QuizQuestion] = None
    result: Optional[CompletionResult] = None  # only once the session is completed
