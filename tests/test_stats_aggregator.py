from __future__ import annotations

from conftest import make_record
from quizzy.core.models import ProfileSummary
from quizzy.core.services import stats_aggregator


def _records():
    return [
        make_record("A", 3, 100),
        make_record("B", 3, 50),
        make_record("A", 5, 200),
    ]


def test_top_n_orders_by_score_then_earliest_completion():
    rows = stats_aggregator.top_n(_records(), 2)

    assert [(row.rank, row.record.owner_id, row.record.score) for row in rows] == [
        (1, "A", 5),
        (2, "B", 3),
    ]


def test_top_n_ranks_are_consecutive_even_for_ties():
    records = [make_record(f"u{i}", 4, 10 - i) for i in range(5)]

    rows = stats_aggregator.top_n(records)

    assert [row.rank for row in rows] == [1, 2, 3, 4, 5]
    assert [row.record.owner_id for row in rows] == ["u4", "u3", "u2", "u1", "u0"]


def test_top_n_keeps_input_order_for_identical_score_and_time():
    records = [make_record("first", 2, 10), make_record("second", 2, 10)]

    rows = stats_aggregator.top_n(records)

    assert [row.record.owner_id for row in rows] == ["first", "second"]


def test_top_n_truncates_and_handles_short_inputs():
    records = [make_record("A", i % 6, i) for i in range(30)]

    assert len(stats_aggregator.top_n(records)) == 20
    assert len(stats_aggregator.top_n(records[:3], 20)) == 3
    assert stats_aggregator.top_n([], 20) == []
    assert stats_aggregator.top_n(records, 0) == []


def test_summarize_counts_attempts_and_best_score():
    summary = stats_aggregator.summarize("A", _records())

    assert summary.attempt_count == 2
    assert summary.best_score == 5


def test_summarize_unknown_owner_is_zero():
    summary = stats_aggregator.summarize("nobody", _records())

    assert summary.attempt_count == 0
    assert summary.best_score == 0


def test_summarize_is_idempotent():
    records = tuple(_records())

    assert stats_aggregator.summarize("A", records) == stats_aggregator.summarize("A", records)


def test_history_is_newest_first_and_limited():
    records = _records() + [make_record("A", 1, 300), make_record("A", 2, 150)]

    recent = stats_aggregator.history("A", records, limit=3)

    assert recent == [
        make_record("A", 1, 300),
        make_record("A", 5, 200),
        make_record("A", 2, 150),
    ]
    assert stats_aggregator.history("A", records, limit=3) == recent


def test_reconcile_only_rewrites_drifted_cache():
    summary = stats_aggregator.summarize("A", _records())

    in_sync = ProfileSummary(name="Ada", total_quizzes=2, best_score=5)
    assert stats_aggregator.reconcile(in_sync, summary, "Quizzy User") is None

    drifted = ProfileSummary(name="Ada", total_quizzes=1, best_score=3)
    assert stats_aggregator.reconcile(drifted, summary, "Quizzy User") == in_sync

    assert stats_aggregator.reconcile(None, summary, "Quizzy User") == ProfileSummary(
        name="Quizzy User", total_quizzes=2, best_score=5
    )


def test_short_owner_id():
    assert stats_aggregator.short_owner_id("") == "Unknown"
    assert stats_aggregator.short_owner_id("abc123") == "abc123"
    assert stats_aggregator.short_owner_id("abcdefghijkl") == "abcd...ijkl"
