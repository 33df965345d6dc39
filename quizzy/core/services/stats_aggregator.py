"""Pure derivations of personal statistics and rankings from result records.

Every function here works on a snapshot of records and never mutates it.
Statistics are recomputed on each read; cached profile values are only hints.
"""

from __future__ import annotations

from collections.abc import Iterable

from quizzy.constants.quiz_constants import DEFAULT_HISTORY_LIMIT, DEFAULT_LEADERBOARD_SIZE
from quizzy.core.models import LeaderboardRow, PersonalSummary, ProfileSummary, ResultRecord


def summarize(owner_id: str, records: Iterable[ResultRecord]) -> PersonalSummary:
    """Count the owner's attempts and find their best score (0 when none)."""
    scores = [record.score for record in records if record.owner_id == owner_id]
    return PersonalSummary(
        owner_id=owner_id,
        attempt_count=len(scores),
        best_score=max(scores, default=0),
    )


def top_n(records: Iterable[ResultRecord], n: int = DEFAULT_LEADERBOARD_SIZE) -> list[LeaderboardRow]:
    """Rank records by score, highest first.

    Equal scores are ordered by ``completed_at`` ascending so the earlier
    attempt ranks higher; records that also share a timestamp keep their input
    order. Every row gets its own consecutive rank starting at 1.
    """
    if n < 1:
        return []
    ordered = sorted(records, key=lambda r: (-r.score, r.completed_at))
    return [LeaderboardRow(rank=rank, record=record) for rank, record in enumerate(ordered[:n], start=1)]


def history(
    owner_id: str,
    records: Iterable[ResultRecord],
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> list[ResultRecord]:
    """Return the owner's most recent attempts, newest first."""
    if limit < 1:
        return []
    owned = [record for record in records if record.owner_id == owner_id]
    owned.sort(key=lambda r: r.completed_at, reverse=True)
    return owned[:limit]


def reconcile(cached: ProfileSummary | None, summary: PersonalSummary, default_name: str) -> ProfileSummary | None:
    """Return the profile to write back if the cached copy drifted, else None."""
    if cached is not None and (
        cached.total_quizzes == summary.attempt_count and cached.best_score == summary.best_score
    ):
        return None
    return ProfileSummary(
        name=cached.name if cached is not None else default_name,
        total_quizzes=summary.attempt_count,
        best_score=summary.best_score,
    )


def short_owner_id(owner_id: str) -> str:
    """Abbreviate an owner id for public display on the leaderboard."""
    if not owner_id or not owner_id.strip():
        return "Unknown"
    if len(owner_id) <= 8:
        return owner_id
    return f"{owner_id[:4]}...{owner_id[-4:]}"
