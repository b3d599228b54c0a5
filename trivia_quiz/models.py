"""
Core data models for the trivia quiz session.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple


class Difficulty(Enum):
    """Question difficulty levels accepted by the trivia provider."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SessionState(Enum):
    """Enumeration of possible quiz session states."""
    SELECTING = "selecting"
    LOADING = "loading"
    ANSWERING = "answering"
    REVEALED = "revealed"
    COMPLETED = "completed"


class LoadFailureReason(Enum):
    """Why a question set could not be loaded."""
    TRANSPORT = "transport"
    FORMAT = "format"
    EMPTY = "empty"


@dataclass(frozen=True)
class SelectionCriteria:
    """The (difficulty, category, amount) triple chosen before a quiz starts."""
    difficulty: Optional[Difficulty] = None
    category: Optional[str] = None
    amount: Optional[int] = None

    def is_complete(self) -> bool:
        """True once all three fields are set."""
        return (
            self.difficulty is not None
            and bool(self.category)
            and self.amount is not None
        )

    def with_difficulty(self, difficulty: Optional[Difficulty]) -> "SelectionCriteria":
        return replace(self, difficulty=difficulty)

    def with_category(self, category: Optional[str]) -> "SelectionCriteria":
        return replace(self, category=category)

    def with_amount(self, amount: Optional[int]) -> "SelectionCriteria":
        return replace(self, amount=amount)


@dataclass(frozen=True)
class Question:
    """Represents a single multiple-choice question with pre-shuffled options."""
    text: str
    correct_answer: str
    options: Tuple[str, ...] = field(default_factory=tuple)
    category: Optional[str] = None
    difficulty: Optional[str] = None

    def is_correct(self, answer: str) -> bool:
        # Provider strings are compared verbatim, no normalization.
        return answer == self.correct_answer


# An ordered, immutable collection of questions for one session.
QuestionSet = Tuple[Question, ...]


@dataclass(frozen=True)
class LoadError:
    """A failed fetch, tagged with the failure reason."""
    reason: LoadFailureReason
    detail: str = ""


@dataclass(frozen=True)
class ScoreSummary:
    """Final result of a completed quiz session."""
    score: int
    total: int

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.score / self.total) * 100

    @property
    def message(self) -> str:
        return f"You scored {self.score}/{self.total}"


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a quiz session, enough to render it."""
    state: SessionState
    criteria: SelectionCriteria
    question: Optional[Question]
    question_number: int
    score: int
    total: int
    selected_answer: Optional[str]
    last_answer_correct: Optional[bool]
    can_submit: bool
    is_last_question: bool
    summary: Optional[ScoreSummary] = None
    last_error: Optional[LoadError] = None

    @property
    def is_loading(self) -> bool:
        return self.state is SessionState.LOADING
