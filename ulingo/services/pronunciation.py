"""
Pronunciation practice session controller

Walks a level's pronunciation items forwards and backwards. Scoring a
recording is delegated to a ``PronunciationScorer``; the default one is a
placeholder until real speech analysis is plugged in.
"""
import random
from enum import Enum
from typing import Optional, Protocol, Sequence, Tuple

from ulingo.exceptions import EmptyLevelError, SessionFinishedError
from ulingo.schemas.level import PronunciationItem


class PronunciationState(str, Enum):
    AT_WORD = "at_word"
    FINISHED = "finished"


class PronunciationScorer(Protocol):
    async def score(self, item: PronunciationItem, audio: Optional[bytes]) -> float:
        ...


class PlaceholderPronunciationScorer:
    """Score in [60, 100] regardless of the recording"""

    def __init__(self, rng: Optional[random.Random] = None, low: float = 60.0, high: float = 100.0):
        self.rng = rng or random.Random()
        self.low = low
        self.high = high

    async def score(self, item: PronunciationItem, audio: Optional[bytes]) -> float:
        return round(self.rng.uniform(self.low, self.high), 1)


FEEDBACK_BANDS = (
    (90, "Excellent! Your pronunciation is very accurate!"),
    (75, "Good job! Pay attention to the tone."),
    (60, "Keep practicing! Focus on the rising tone."),
)
TRY_AGAIN = "Try again. Listen carefully to the model."
FINISHED_MESSAGE = "Great job completing the pronunciation practice. Keep practicing to improve your accent!"


def feedback_for_score(score: float) -> str:
    for threshold, message in FEEDBACK_BANDS:
        if score >= threshold:
            return message
    return TRY_AGAIN


class PronunciationSession:

    def __init__(self, level_id: int, items: Sequence[PronunciationItem]):
        if not items:
            raise EmptyLevelError(f"Level {level_id} has no pronunciation practice yet")
        self.level_id = level_id
        self.items: Tuple[PronunciationItem, ...] = tuple(items)
        self.state = PronunciationState.AT_WORD
        self.index = 0
        self.last_score: Optional[float] = None
        self.feedback: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def is_finished(self) -> bool:
        return self.state is PronunciationState.FINISHED

    @property
    def current_item(self) -> Optional[PronunciationItem]:
        if self.is_finished:
            return None
        return self.items[self.index]

    def _clear_attempt(self) -> None:
        self.last_score = None
        self.feedback = None

    def next(self) -> PronunciationState:
        if self.is_finished:
            return self.state
        self._clear_attempt()
        if self.index + 1 < self.total:
            self.index += 1
        else:
            self.state = PronunciationState.FINISHED
            self.feedback = FINISHED_MESSAGE
        return self.state

    def previous(self) -> PronunciationState:
        if not self.is_finished and self.index > 0:
            self.index -= 1
            self._clear_attempt()
        return self.state

    def restart(self) -> PronunciationState:
        self.state = PronunciationState.AT_WORD
        self.index = 0
        self._clear_attempt()
        return self.state

    async def record(self, scorer: PronunciationScorer, audio: Optional[bytes] = None) -> float:
        if self.is_finished:
            raise SessionFinishedError("Practice is finished, restart to record again")
        score = await scorer.score(self.items[self.index], audio)
        self.last_score = score
        self.feedback = feedback_for_score(score)
        return score
