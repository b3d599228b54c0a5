"""
Quiz session state machine.
Owns the selection criteria, the loaded question set and the per-question
progress of a single quiz session, and triggers question fetches when the
criteria become complete.
"""
import logging
from typing import Any, Callable, Optional, Union

from .config_manager import ConfigManager
from .models import (
    Difficulty,
    LoadError,
    LoadFailureReason,
    Question,
    QuestionSet,
    ScoreSummary,
    SelectionCriteria,
    SessionSnapshot,
    SessionState,
)
from .score_reporter import summarize


class QuizSessionError(Exception):
    """Base exception for quiz session errors."""
    pass


class InvalidCriteriaError(QuizSessionError, ValueError):
    """Raised when a criteria value is not one of the allowed values."""
    pass


class QuizSession:
    """
    Drives one quiz from criteria selection through to the final score.

    States move SELECTING -> LOADING -> ANSWERING <-> REVEALED -> COMPLETED,
    and restart() returns to SELECTING from anywhere. Fetches are tagged
    with a generation number; a fetch that completes after a newer one has
    started (or after a restart) is discarded.
    """

    def __init__(
        self,
        loader: Any,
        config_manager: Optional[ConfigManager] = None,
        on_complete: Optional[Callable[[ScoreSummary], Any]] = None
    ):
        """
        Initialize the quiz session.

        Args:
            loader: Object with an async load(criteria) method
            config_manager: Source of allowed criteria values, defaults used if None
            on_complete: Called once with the ScoreSummary when the quiz completes
        """
        self.logger = logging.getLogger(__name__)
        self.loader = loader
        self.config_manager = config_manager or ConfigManager()
        self.on_complete = on_complete

        self._generation = 0
        self._criteria = SelectionCriteria()
        self._state = SessionState.SELECTING
        self._last_error: Optional[LoadError] = None
        self._clear_progress()

    def _clear_progress(self) -> None:
        self._question_set: QuestionSet = ()
        self._current_index = 0
        self._selected_answer: Optional[str] = None
        self._score = 0
        self._last_answer_correct: Optional[bool] = None
        self._summary: Optional[ScoreSummary] = None

    def _transition(self, new_state: SessionState, reason: str) -> None:
        old_state = self._state
        self._state = new_state
        self.logger.debug(
            f"Session state: {old_state.value} -> {new_state.value} ({reason})",
            extra={
                'event_type': 'session_transition',
                'from_state': old_state.value,
                'to_state': new_state.value,
                'reason': reason
            }
        )

    # Read-only state

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def criteria(self) -> SelectionCriteria:
        return self._criteria

    @property
    def question_set(self) -> QuestionSet:
        return self._question_set

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_question(self) -> Optional[Question]:
        if self._state not in (SessionState.ANSWERING, SessionState.REVEALED,
                               SessionState.COMPLETED):
            return None
        if self._current_index >= len(self._question_set):
            return None
        return self._question_set[self._current_index]

    @property
    def selected_answer(self) -> Optional[str]:
        return self._selected_answer

    @property
    def score(self) -> int:
        return self._score

    @property
    def total(self) -> int:
        return len(self._question_set)

    @property
    def last_answer_correct(self) -> Optional[bool]:
        return self._last_answer_correct

    @property
    def summary(self) -> Optional[ScoreSummary]:
        return self._summary

    @property
    def last_error(self) -> Optional[LoadError]:
        return self._last_error

    @property
    def generation(self) -> int:
        return self._generation

    def is_last_question(self) -> bool:
        return bool(self._question_set) and self._current_index == len(self._question_set) - 1

    def can_submit(self) -> bool:
        """Whether the submit control should be enabled."""
        if self._state is SessionState.ANSWERING:
            return bool(self._selected_answer)
        return self._state is SessionState.REVEALED

    # Criteria selection

    async def set_difficulty(self, value: Union[Difficulty, str]) -> Optional[Union[QuestionSet, LoadError]]:
        """
        Set the difficulty and fetch questions if the criteria are complete.

        Args:
            value: Difficulty member or its string value ("easy", "medium", "hard")

        Returns:
            Loaded QuestionSet or LoadError if a fetch was applied, None otherwise

        Raises:
            InvalidCriteriaError: If value is not a known difficulty
        """
        if not self.config_manager.is_valid_difficulty(value):
            raise InvalidCriteriaError(f"Unknown difficulty: {value!r}")
        difficulty = value if isinstance(value, Difficulty) else Difficulty(value)
        return await self._update_criteria(self._criteria.with_difficulty(difficulty))

    async def set_category(self, value: str) -> Optional[Union[QuestionSet, LoadError]]:
        """
        Set the category and fetch questions if the criteria are complete.

        Args:
            value: Provider category id (e.g. "21") or configured label (e.g. "sports")

        Returns:
            Loaded QuestionSet or LoadError if a fetch was applied, None otherwise

        Raises:
            InvalidCriteriaError: If value is not a configured category
        """
        category = self.config_manager.resolve_category(value)
        if category is None:
            raise InvalidCriteriaError(f"Unknown category: {value!r}")
        return await self._update_criteria(self._criteria.with_category(category))

    async def set_amount(self, value: Union[int, str]) -> Optional[Union[QuestionSet, LoadError]]:
        """
        Set the question count and fetch questions if the criteria are complete.

        Args:
            value: One of the configured question counts, as int or numeric string

        Returns:
            Loaded QuestionSet or LoadError if a fetch was applied, None otherwise

        Raises:
            InvalidCriteriaError: If value is not a configured question count
        """
        amount = value
        if isinstance(value, str) and value.strip().isdigit():
            amount = int(value)
        if not self.config_manager.is_valid_amount(amount):
            raise InvalidCriteriaError(f"Unsupported question count: {value!r}")
        return await self._update_criteria(self._criteria.with_amount(amount))

    async def _update_criteria(self, criteria: SelectionCriteria) -> Optional[Union[QuestionSet, LoadError]]:
        unchanged = criteria == self._criteria
        self._criteria = criteria

        if not criteria.is_complete():
            self.logger.debug("Selection criteria incomplete, waiting for more input")
            return None

        # Re-selecting the same value only retries a failed fetch
        if unchanged and self._last_error is None and self._state is not SessionState.SELECTING:
            return None

        return await self._fetch()

    async def _fetch(self) -> Optional[Union[QuestionSet, LoadError]]:
        self._generation += 1
        generation = self._generation
        criteria = self._criteria

        self._clear_progress()
        self._last_error = None
        self._transition(SessionState.LOADING, f"fetch #{generation} started")

        result = await self.loader.load(criteria)

        if generation != self._generation:
            self.logger.info(
                f"Discarding stale fetch #{generation} (current is #{self._generation})",
                extra={'event_type': 'fetch_discarded', 'generation': generation}
            )
            return None

        if result is None:
            return None

        if not isinstance(result, LoadError) and not result:
            result = LoadError(LoadFailureReason.EMPTY, "Loader returned no questions")

        if isinstance(result, LoadError):
            self._last_error = result
            self.logger.warning(
                f"No quiz data available: {result.reason.value} {result.detail}".rstrip(),
                extra={'event_type': 'fetch_failed', 'generation': generation}
            )
            return result

        self._question_set = tuple(result)
        self._transition(SessionState.ANSWERING, f"{len(self._question_set)} questions loaded")
        return self._question_set

    # Answering

    def select_answer(self, option: str) -> bool:
        """
        Record the user's selected option for the current question.

        Args:
            option: The selected option text; empty string clears the selection

        Returns:
            True if the selection was recorded, False if not answering
        """
        if self._state is not SessionState.ANSWERING:
            self.logger.warning(f"Ignoring answer selection in state {self._state.value}")
            return False

        self._selected_answer = option or None
        return True

    def submit(self) -> bool:
        """
        Submit the selected answer, or move on once the answer is revealed.

        Returns:
            True if the session changed state, False if the submission was rejected
        """
        if self._state is SessionState.REVEALED:
            return self.advance()

        if self._state is not SessionState.ANSWERING:
            self.logger.warning(f"Ignoring submit in state {self._state.value}")
            return False

        if not self._selected_answer:
            self.logger.debug("Ignoring submit without a selected answer")
            return False

        question = self._question_set[self._current_index]
        is_correct = question.is_correct(self._selected_answer)
        if is_correct:
            self._score += 1
        self._last_answer_correct = is_correct

        self._transition(
            SessionState.REVEALED,
            f"question {self._current_index + 1} answered {'correctly' if is_correct else 'incorrectly'}"
        )
        return True

    def advance(self) -> bool:
        """
        Move past a revealed answer to the next question or to completion.

        Returns:
            True if the session advanced, False if no answer is revealed
        """
        if self._state is not SessionState.REVEALED:
            self.logger.warning(f"Ignoring advance in state {self._state.value}")
            return False

        if self._current_index + 1 < len(self._question_set):
            self._current_index += 1
            self._selected_answer = None
            self._last_answer_correct = None
            self._transition(SessionState.ANSWERING, f"question {self._current_index + 1}")
            return True

        self._summary = summarize(self._score, len(self._question_set))
        self._transition(SessionState.COMPLETED, self._summary.message)
        self.logger.info(
            f"Quiz completed: {self._summary.message}",
            extra={
                'event_type': 'quiz_completed',
                'score': self._summary.score,
                'total': self._summary.total
            }
        )
        if self.on_complete is not None:
            self.on_complete(self._summary)
        return True

    def restart(self) -> None:
        """Clear criteria and all progress, returning to criteria selection."""
        # Bumping the generation discards any fetch still in flight
        self._generation += 1
        self._criteria = SelectionCriteria()
        self._last_error = None
        self._clear_progress()
        self._transition(SessionState.SELECTING, "restart")

    def snapshot(self) -> SessionSnapshot:
        """
        Get a read-only view of the session for rendering.

        Returns:
            SessionSnapshot of the current state
        """
        question = self.current_question
        return SessionSnapshot(
            state=self._state,
            criteria=self._criteria,
            question=question,
            question_number=self._current_index + 1 if question is not None else 0,
            score=self._score,
            total=len(self._question_set),
            selected_answer=self._selected_answer,
            last_answer_correct=self._last_answer_correct,
            can_submit=self.can_submit(),
            is_last_question=self.is_last_question(),
            summary=self._summary,
            last_error=self._last_error,
        )
