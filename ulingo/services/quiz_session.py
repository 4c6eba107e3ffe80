"""
Quiz session controller

A session walks a snapshot of a level's quizzes one question at a time:

    IN_PROGRESS(index, score, selected) --submit--> IN_PROGRESS(index + 1, score', None)
    IN_PROGRESS(last, score, selected)  --submit--> COMPLETED(score')

Correctness is never revealed per question, only the final score.
"""
from enum import Enum
from typing import Optional, Sequence, Tuple

from ulingo.exceptions import EmptyLevelError, NoAnswerSelectedError, SessionFinishedError
from ulingo.schemas.level import Quiz
from ulingo.services import progression


class QuizState(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class QuizSession:

    def __init__(self, level_id: int, quizzes: Sequence[Quiz]):
        if not quizzes:
            raise EmptyLevelError(f"Level {level_id} has no quizzes yet")
        self.level_id = level_id
        self.quizzes: Tuple[Quiz, ...] = tuple(quizzes)
        self.state = QuizState.IN_PROGRESS
        self.current_index = 0
        self.score = 0
        self.selected_answer: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.quizzes)

    @property
    def is_completed(self) -> bool:
        return self.state is QuizState.COMPLETED

    @property
    def current_quiz(self) -> Optional[Quiz]:
        if self.is_completed:
            return None
        return self.quizzes[self.current_index]

    def select_answer(self, option: str) -> bool:
        """Set or change the pending choice; ignored once the quiz is over"""
        if self.is_completed:
            return False
        self.selected_answer = option
        return True

    def submit(self) -> QuizState:
        if self.is_completed:
            raise SessionFinishedError("Quiz is already finished")
        if self.selected_answer is None:
            raise NoAnswerSelectedError("Select an answer first")

        if self.selected_answer == self.quizzes[self.current_index].correct:
            self.score += 1

        self.selected_answer = None
        if self.current_index == self.total - 1:
            self.state = QuizState.COMPLETED
        else:
            self.current_index += 1
        return self.state

    def outcome(self) -> str:
        return progression.classify_score(self.score, self.total)
