"""Domain models for the quiz engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from quizzy.core.errors import InvalidRecordError


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question as delivered by a question source.

    Structural validity is checked by the question pool, not here, so that
    malformed source data can be filtered instead of crashing the loader.
    """

    id: str | None
    prompt: str
    options: tuple[str, ...]
    correct_index: int


@dataclass(frozen=True, slots=True)
class ResultRecord:
    """Immutable outcome of one completed quiz attempt."""

    owner_id: str
    score: int
    total: int
    completed_at: datetime

    def __post_init__(self) -> None:
        if not self.owner_id or not self.owner_id.strip():
            raise InvalidRecordError("Result record requires an owner id.")
        if self.total <= 0:
            raise InvalidRecordError("Result record total must be positive.")
        if not 0 <= self.score <= self.total:
            raise InvalidRecordError(
                f"Result record score {self.score} is outside 0..{self.total}."
            )
        if self.completed_at.tzinfo is None:
            raise InvalidRecordError("completed_at must be timezone-aware.")

    @property
    def percentage(self) -> int:
        return int(self.score * 100 / self.total)


@dataclass(frozen=True, slots=True)
class PersonalSummary:
    """Attempt count and best score derived for one owner."""

    owner_id: str
    attempt_count: int
    best_score: int


@dataclass(frozen=True, slots=True)
class LeaderboardRow:
    rank: int
    record: ResultRecord


@dataclass(frozen=True, slots=True)
class ProfileSummary:
    """Advisory cached copy of a user's profile statistics."""

    name: str
    total_quizzes: int = 0
    best_score: int = 0


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Read-only view of an in-progress or completed quiz session."""

    owner_id: str
    position: int
    total: int
    score: int
    current_question: Question | None
    selected_option_index: int | None
    is_completed: bool
