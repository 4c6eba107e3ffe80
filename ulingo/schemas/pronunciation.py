from pydantic import BaseModel
from typing import Optional

from ulingo.schemas.level import PronunciationItem


class RecordAttempt(BaseModel):
    audio_base64: Optional[str] = None


class PronunciationSessionView(BaseModel):
    session_id: str
    level_id: int
    state: str
    index: int
    total: int
    item: Optional[PronunciationItem] = None
    last_score: Optional[float] = None
    feedback: Optional[str] = None
