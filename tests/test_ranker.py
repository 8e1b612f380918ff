"""Test the keep filter, ranking rules and batched persistence."""

import pytest
from contracts import CombinationResult, RankingRule
from conversion_patterns.analysis.ranker import (
    apply_keep_filter,
    build_ranked_records,
    passes_keep_filter,
    persist_ranked,
    rank_results,
    summarize_top,
)
from conversion_patterns.core.result_store import InMemoryResultSink


def _result(pair=("A", "B"), aic=100.0, lift=1.0, exposed=10, conversions=2, odds_ratio=1.5):
    return CombinationResult(
        combination=pair,
        log_likelihood=(4 - aic) / 2,
        aic=aic,
        odds_ratio=odds_ratio,
        precision=0.2,
        recall=0.1,
        lift=lift,
        users_with_exposure=exposed,
        conversion_rate_in_group=conversions / exposed if exposed else 0.0,
        overall_conversion_rate=0.1,
        total_conversions=conversions,
    )


def test_keep_filter_needs_exposure_and_conversion():
    """Zero exposure or zero conversions drop the row."""
    assert passes_keep_filter(_result(exposed=3, conversions=1))
    assert not passes_keep_filter(_result(exposed=3, conversions=0))
    assert not passes_keep_filter(_result(exposed=0, conversions=0))
    
    kept = apply_keep_filter([_result(exposed=3, conversions=0), _result(pair=("C", "D"))])
    assert [r.combination for r in kept] == [("C", "D")]


def test_rules_disagree_on_same_results():
    """AIC ascending and lift x conversions descending pick different winners."""
    first = _result(pair=("A", "B"), aic=120.0, lift=1.5, conversions=2)   # EV 3.0
    second = _result(pair=("C", "D"), aic=80.0, lift=1.5, conversions=1)   # EV 1.5
    
    by_aic = rank_results([first, second], RankingRule.AIC_ASCENDING)
    by_ev = rank_results([first, second], RankingRule.LIFT_TIMES_CONVERSIONS_DESCENDING)
    
    assert [r.combination for r in by_aic] == [("C", "D"), ("A", "B")]
    assert [r.combination for r in by_ev] == [("A", "B"), ("C", "D")]


def test_rule_accepts_string_value():
    """Rules given as their string value work too."""
    ranked = rank_results([_result(aic=5.0), _result(aic=1.0)], "aic_ascending")
    assert [r.aic for r in ranked] == [1.0, 5.0]


def test_ties_keep_evaluation_order():
    """Stable sort: equal AIC keeps input order."""
    results = [_result(pair=(f"e{i}", "z"), aic=50.0) for i in range(5)]
    ranked = rank_results(results, RankingRule.AIC_ASCENDING)
    assert [r.combination for r in ranked] == [r.combination for r in results]


def test_ranks_are_one_based_and_contiguous():
    """Ranks run 1..n in list order with display names attached."""
    ranked = rank_results(
        [_result(pair=("A", "B"), aic=3.0), _result(pair=("B", "C"), aic=2.0)],
        RankingRule.AIC_ASCENDING,
    )
    records = build_ranked_records(
        ranked,
        analyzed_at="2024-01-01T00:00:00+00:00",
        display_names={"B": "bravo"},
        analysis_type="subscription",
    )
    
    assert [r.rank for r in records] == [1, 2]
    assert (records[0].entity_id_1, records[0].entity_id_2) == ("B", "C")
    assert records[0].display_name_1 == "bravo"
    assert records[0].display_name_2 is None
    assert all(r.analysis_type == "subscription" for r in records)


def test_persist_writes_in_batches():
    """250 rows with batch size 100 go out as 100, 100, 50."""
    ranked = [_result(pair=(f"e{i}", "z"), aic=float(i)) for i in range(250)]
    records = build_ranked_records(ranked, analyzed_at="t")
    sink = InMemoryResultSink()
    
    written = persist_ranked(sink, "copy", records, batch_size=100)
    
    assert written == 250
    assert sink.batch_sizes == [100, 100, 50]
    assert [r.rank for r in sink.rows("copy")] == list(range(1, 251))


def test_persist_replaces_previous_output():
    """A second run leaves only its own rows."""
    sink = InMemoryResultSink()
    persist_ranked(sink, "copy", build_ranked_records([_result(), _result()], analyzed_at="t1"))
    persist_ranked(sink, "copy", build_ranked_records([_result()], analyzed_at="t2"))
    
    rows = sink.rows("copy")
    assert len(rows) == 1
    assert rows[0].analyzed_at == "t2"


def test_persist_empty_clears_output():
    """Persisting nothing still replaces the old rows."""
    sink = InMemoryResultSink()
    persist_ranked(sink, "copy", build_ranked_records([_result()], analyzed_at="t1"))
    persist_ranked(sink, "copy", [])
    
    assert sink.rows("copy") == []
    assert sink.batch_sizes == []


def test_summary_rounds_and_uses_percent():
    """Top summary values are rounded; the rate is a percentage."""
    records = build_ranked_records(
        [_result(aic=12.3456, lift=1.23456, exposed=3, conversions=1, odds_ratio=2.71828)],
        analyzed_at="t",
        display_names={"A": "alpha"},
    )
    top = summarize_top(records, top_n=10)
    
    assert len(top) == 1
    assert top[0].entities == ["alpha", "B"]
    assert top[0].aic == 12.35
    assert top[0].odds_ratio == 2.72
    assert top[0].lift == 1.23
    assert top[0].conversion_rate == 33.33


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
