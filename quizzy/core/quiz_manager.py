"""Business logic shared by the API: quiz flow, persistence and statistics."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from threading import Lock

from quizzy.constants.quiz_constants import (
    DEFAULT_DISPLAY_NAME,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_LEADERBOARD_SIZE,
    DEFAULT_QUIZ_LENGTH,
)
from quizzy.core.errors import NoActiveSessionError, PersistenceError, SourceUnavailableError
from quizzy.core.models import (
    LeaderboardRow,
    PersonalSummary,
    ProfileSummary,
    ResultRecord,
    SessionSnapshot,
)
from quizzy.core.question_importer import QuestionSource
from quizzy.core.services import stats_aggregator
from quizzy.core.services.profile_cache import InMemoryProfileCache, ProfileCache
from quizzy.core.services.question_pool import QuestionPool
from quizzy.core.services.quiz_session import QuizSession
from quizzy.core.services.result_store import InMemoryResultStore, ResultStore, persist

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FinishOutcome:
    """Result of finishing a quiz; ``warning`` is set when saving failed."""

    record: ResultRecord
    persisted: bool
    warning: str | None = None


@dataclass(frozen=True, slots=True)
class PersonalStats:
    """Personal summary plus the display name; ``stale`` marks cached values."""

    name: str
    summary: PersonalSummary
    stale: bool = False


class QuizManager:
    """Facade over QuestionPool, QuizSession, ResultStore and the profile cache.

    Holds at most one in-progress session per owner. Every operation takes the
    owner id explicitly.
    """

    def __init__(
        self,
        *,
        pool: QuestionPool | None = None,
        store: ResultStore | None = None,
        profile_cache: ProfileCache | None = None,
        question_source: QuestionSource | None = None,
        quiz_length: int = DEFAULT_QUIZ_LENGTH,
        leaderboard_size: int = DEFAULT_LEADERBOARD_SIZE,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._lock = Lock()
        self._pool = pool or QuestionPool()
        self._store = store if store is not None else InMemoryResultStore()
        self._profiles = profile_cache if profile_cache is not None else InMemoryProfileCache()
        self._question_source = question_source
        self._quiz_length = quiz_length
        self._leaderboard_size = leaderboard_size
        self._history_limit = history_limit
        self._clock = clock
        self._sessions: dict[str, QuizSession] = {}

    # --- Question pool ---

    def reload_questions(self) -> int:
        """Reload the pool from the configured question source."""
        if self._question_source is None:
            raise SourceUnavailableError("No question source configured.")
        questions = self._question_source.load_questions()
        with self._lock:
            return self._pool.load(questions)

    def get_question_count(self) -> int:
        with self._lock:
            return self._pool.size

    def set_shuffle_seed(self, seed: int | None) -> None:
        with self._lock:
            self._pool.set_seed(seed)

    # --- Quiz session ---

    def start_quiz(self, owner_id: str) -> SessionSnapshot:
        with self._lock:
            session = QuizSession.start(self._pool, self._quiz_length, owner_id, clock=self._clock)
            if self._sessions.pop(owner_id, None) is not None:
                logger.info("Abandoning unfinished quiz for %s", owner_id)
            self._sessions[owner_id] = session
            logger.info("Started quiz for %s with %d questions", owner_id, session.total)
            return session.snapshot()

    def get_session(self, owner_id: str) -> SessionSnapshot:
        with self._lock:
            return self._require_session(owner_id).snapshot()

    def select_option(self, owner_id: str, option_index: int) -> SessionSnapshot:
        with self._lock:
            session = self._require_session(owner_id)
            session.select_option(option_index)
            return session.snapshot()

    def advance(self, owner_id: str) -> SessionSnapshot:
        with self._lock:
            session = self._require_session(owner_id)
            session.advance()
            return session.snapshot()

    def abandon_quiz(self, owner_id: str) -> None:
        with self._lock:
            self._require_session(owner_id)
            del self._sessions[owner_id]
            logger.info("Quiz abandoned by %s", owner_id)

    def finish_quiz(self, owner_id: str) -> FinishOutcome:
        """Close the owner's completed session and save its result.

        A failed save does not raise: the outcome carries a warning and the
        score is still returned to the caller.
        """
        with self._lock:
            session = self._require_session(owner_id)
            record = session.finish()
            del self._sessions[owner_id]

        try:
            persist(self._store, record)
        except PersistenceError as exc:
            logger.warning("Could not save result for %s: %s", owner_id, exc)
            return FinishOutcome(
                record=record,
                persisted=False,
                warning="Your score could not be saved. It will not appear in your stats.",
            )
        return FinishOutcome(record=record, persisted=True)

    # --- Statistics ---

    def get_personal_summary(self, owner_id: str) -> PersonalStats:
        """Recompute the owner's summary from stored results.

        The profile cache is refreshed when it disagrees. If the store cannot
        be read, a cached summary is returned marked stale, if there is one.
        """
        cached = self._profiles.read_cached(owner_id)
        try:
            records = self._store.query_by_owner(owner_id)
        except SourceUnavailableError:
            if cached is None:
                raise
            logger.warning("Result store unavailable; serving cached stats for %s", owner_id)
            return PersonalStats(
                name=cached.name,
                summary=PersonalSummary(
                    owner_id=owner_id,
                    attempt_count=cached.total_quizzes,
                    best_score=cached.best_score,
                ),
                stale=True,
            )

        summary = stats_aggregator.summarize(owner_id, records)
        refreshed = stats_aggregator.reconcile(cached, summary, DEFAULT_DISPLAY_NAME)
        if refreshed is not None:
            self._profiles.write_cached(owner_id, refreshed)
            cached = refreshed
        return PersonalStats(name=cached.name, summary=summary)

    def set_display_name(self, owner_id: str, name: str) -> ProfileSummary:
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("Display name must not be empty.")
        cached = self._profiles.read_cached(owner_id) or ProfileSummary(name=cleaned)
        profile = ProfileSummary(
            name=cleaned,
            total_quizzes=cached.total_quizzes,
            best_score=cached.best_score,
        )
        self._profiles.write_cached(owner_id, profile)
        return profile

    def get_leaderboard(self, limit: int | None = None) -> list[LeaderboardRow]:
        records = self._store.query_all()
        return stats_aggregator.top_n(records, limit if limit is not None else self._leaderboard_size)

    def get_history(self, owner_id: str, limit: int | None = None) -> list[ResultRecord]:
        records = self._store.query_by_owner(owner_id)
        return stats_aggregator.history(
            owner_id, records, limit if limit is not None else self._history_limit
        )

    def _require_session(self, owner_id: str) -> QuizSession:
        session = self._sessions.get(owner_id)
        if session is None:
            raise NoActiveSessionError(f"No quiz in progress for {owner_id}.")
        return session
