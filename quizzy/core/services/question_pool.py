"""Service holding the validated question catalog and sampling quizzes from it."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable

from quizzy.core.errors import EmptyPoolError, InvalidQuestionError
from quizzy.core.models import Question

logger = logging.getLogger(__name__)


class QuestionPool:
    """Validates raw questions and samples quiz-sized subsets without replacement."""

    def __init__(self, questions: Iterable[Question] = (), *, rng: random.Random | None = None) -> None:
        self._questions: list[Question] = []
        self._question_counter: int = 0
        self._rng = rng or random.Random()
        self.load(questions)

    def load(self, questions: Iterable[Question]) -> int:
        """Replace the catalog with the valid subset of ``questions``.

        Invalid questions are logged and dropped. Returns the number kept.
        """
        raw_questions = list(questions)
        # Generated ids must not shadow ids supplied by the source.
        reserved_ids = {str(raw.id) for raw in raw_questions if raw.id is not None}
        accepted: list[Question] = []
        seen_ids: set[str] = set()
        rejected = 0
        for raw in raw_questions:
            try:
                prepared = self._prepare_question(raw, seen_ids, reserved_ids)
            except InvalidQuestionError as exc:
                rejected += 1
                logger.warning("Skipping invalid question %r: %s", raw.id, exc)
                continue
            seen_ids.add(prepared.id)
            accepted.append(prepared)

        self._questions = accepted
        logger.info("Question pool loaded: %d valid, %d rejected", len(accepted), rejected)
        return len(accepted)

    @property
    def size(self) -> int:
        return len(self._questions)

    def questions(self) -> list[Question]:
        """Return a copy of all valid questions in load order."""
        return list(self._questions)

    def set_seed(self, seed: int | None) -> None:
        self._rng.seed(seed)

    def sample(self, n: int) -> list[Question]:
        """Return up to ``n`` distinct questions in uniformly random order.

        A pool smaller than ``n`` yields all of its questions; an empty pool
        raises :class:`EmptyPoolError`.
        """
        if n < 1:
            raise ValueError("Quiz length must be at least 1.")
        if not self._questions:
            raise EmptyPoolError("No valid questions are available.")
        k = min(n, len(self._questions))
        if k < n:
            logger.info("Pool has %d questions; shortening quiz from %d", k, n)
        return self._rng.sample(self._questions, k)

    def _prepare_question(
        self, question: Question, seen_ids: set[str], reserved_ids: set[str]
    ) -> Question:
        prompt = (question.prompt or "").strip()
        if not prompt:
            raise InvalidQuestionError("Question prompt must not be empty.")

        options = self._validate_options(question.options)

        correct_index = question.correct_index
        if isinstance(correct_index, bool) or not isinstance(correct_index, int):
            raise InvalidQuestionError("Correct index must be an integer.")
        if not 0 <= correct_index < len(options):
            raise InvalidQuestionError(
                f"Correct index {correct_index} is outside 0..{len(options) - 1}."
            )

        if question.id is not None:
            question_id = str(question.id)
        else:
            question_id = self._next_question_id(reserved_ids)
        if question_id in seen_ids:
            raise InvalidQuestionError(f"Duplicate question id {question_id!r}.")

        return Question(
            id=question_id,
            prompt=prompt,
            options=options,
            correct_index=correct_index,
        )

    def _next_question_id(self, reserved_ids: set[str]) -> str:
        while True:
            self._question_counter += 1
            candidate = f"q-{self._question_counter}"
            if candidate not in reserved_ids:
                return candidate

    @staticmethod
    def _validate_options(options: Iterable[str]) -> tuple[str, ...]:
        cleaned = tuple(str(option).strip() for option in options or ())
        if len(cleaned) < 2:
            raise InvalidQuestionError("Each question must have at least two options.")
        if any(not option for option in cleaned):
            raise InvalidQuestionError("Option text cannot be empty.")
        if len(set(cleaned)) != len(cleaned):
            raise InvalidQuestionError("Options must be distinct.")
        return cleaned
