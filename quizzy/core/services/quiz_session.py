"""State machine for a single quiz attempt."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from quizzy.core.errors import (
    EmptyPoolError,
    InvalidSelectionError,
    InvalidStateError,
    NoSelectionError,
    NotCompleteError,
)
from quizzy.core.models import Question, ResultRecord, SessionSnapshot
from quizzy.core.services.question_pool import QuestionPool


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionState(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class QuizSession:
    """One user's pass through a sampled quiz.

    Choosing an answer is two-phase: :meth:`select_option` only stages a
    tentative choice, and :meth:`advance` is the only transition that commits
    it and touches ``score`` and ``position``.
    """

    def __init__(
        self,
        owner_id: str,
        questions: list[Question],
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not questions:
            raise EmptyPoolError("Cannot start a quiz without questions.")
        self._owner_id = owner_id
        self._questions: tuple[Question, ...] = tuple(questions)
        self._position: int = 0
        self._answers: dict[int, int] = {}
        self._score: int = 0
        self._selected_option: int | None = None
        self._finished: bool = False
        self._clock = clock or _utc_now

    @classmethod
    def start(
        cls,
        pool: QuestionPool,
        n: int,
        owner_id: str,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> "QuizSession":
        """Sample ``n`` questions from ``pool`` and begin a new session.

        The session length is whatever the pool could supply, which may be
        less than ``n``.
        """
        questions = pool.sample(n)
        return cls(owner_id, questions, clock=clock)

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def total(self) -> int:
        return len(self._questions)

    @property
    def position(self) -> int:
        return self._position

    @property
    def score(self) -> int:
        return self._score

    @property
    def answers(self) -> dict[int, int]:
        return dict(self._answers)

    @property
    def selected_option(self) -> int | None:
        return self._selected_option

    @property
    def state(self) -> SessionState:
        if self._position < len(self._questions):
            return SessionState.ACTIVE
        return SessionState.COMPLETED

    def is_completed(self) -> bool:
        return self.state is SessionState.COMPLETED

    def current_question(self) -> Question | None:
        if self.is_completed():
            return None
        return self._questions[self._position]

    def select_option(self, index: int) -> None:
        """Stage a tentative choice for the current question."""
        question = self.current_question()
        if question is None:
            raise InvalidStateError("Quiz is already completed.")
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidSelectionError(f"Option index must be an integer, got {index!r}.")
        if not 0 <= index < len(question.options):
            raise InvalidSelectionError(
                f"Option index {index} is outside 0..{len(question.options) - 1}."
            )
        self._selected_option = index

    def advance(self) -> bool:
        """Commit the staged choice and move on.

        Returns True if the committed answer was correct.
        """
        question = self.current_question()
        if question is None:
            raise InvalidStateError("Quiz is already completed.")
        if self._selected_option is None:
            raise NoSelectionError("Select an option before advancing.")

        choice = self._selected_option
        self._answers[self._position] = choice
        is_correct = choice == question.correct_index
        if is_correct:
            self._score += 1
        self._position += 1
        self._selected_option = None
        return is_correct

    def finish(self) -> ResultRecord:
        """Return the result record for a completed session.

        A session produces at most one record.
        """
        if not self.is_completed():
            raise NotCompleteError(
                f"{self.total - self._position} question(s) still unanswered."
            )
        if self._finished:
            raise InvalidStateError("Result already produced for this session.")
        record = ResultRecord(
            owner_id=self._owner_id,
            score=self._score,
            total=self.total,
            completed_at=self._clock(),
        )
        self._finished = True
        return record

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            owner_id=self._owner_id,
            position=self._position,
            total=self.total,
            score=self._score,
            current_question=self.current_question(),
            selected_option_index=self._selected_option,
            is_completed=self.is_completed(),
        )
