from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from quizzy.core.models import Question, ResultRecord

EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_question(question_id: str | None = None, correct_index: int = 0, option_count: int = 4) -> Question:
    return Question(
        id=question_id,
        prompt=f"Question {question_id}",
        options=tuple(f"Option {i}" for i in range(option_count)),
        correct_index=correct_index,
    )


def make_record(owner_id: str, score: int, t: int, total: int = 5) -> ResultRecord:
    """Record completed ``t`` seconds after a fixed epoch."""
    return ResultRecord(
        owner_id=owner_id,
        score=score,
        total=total,
        completed_at=EPOCH + timedelta(seconds=t),
    )


class StepClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime = EPOCH) -> None:
        self._now = start

    def __call__(self) -> datetime:
        current = self._now
        self._now += timedelta(seconds=1)
        return current


@pytest.fixture
def clock() -> StepClock:
    return StepClock()
