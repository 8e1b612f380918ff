"""Ranking and persistence of surviving combinations."""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from contracts import CombinationResult, RankedCombination, RankingRule, TopCombination
from conversion_patterns.core.result_store import ResultSink


logger = logging.getLogger(__name__)


def passes_keep_filter(result: CombinationResult) -> bool:
    """At least one user saw both entities and at least one of them converted."""
    return result.users_with_exposure > 0 and result.total_conversions > 0


def apply_keep_filter(results: Iterable[CombinationResult]) -> List[CombinationResult]:
    return [r for r in results if passes_keep_filter(r)]


def rank_results(
    results: Iterable[CombinationResult],
    rule: RankingRule,
) -> List[CombinationResult]:
    """
    Order results by the selected rule. Sorting is stable, so equal scores
    keep their evaluation order.
    """
    rule = RankingRule(rule)
    if rule == RankingRule.AIC_ASCENDING:
        return sorted(results, key=lambda r: r.aic)
    if rule == RankingRule.LIFT_TIMES_CONVERSIONS_DESCENDING:
        return sorted(results, key=lambda r: r.expected_value, reverse=True)
    raise ValueError(f"Unsupported ranking rule: {rule}")


def build_ranked_records(
    ranked: Sequence[CombinationResult],
    analyzed_at: str,
    display_names: Optional[Dict[str, str]] = None,
    analysis_type: Optional[str] = None,
) -> List[RankedCombination]:
    """Attach 1-based ranks and display names."""
    return [
        RankedCombination.from_result(
            rank=index + 1,
            result=result,
            analyzed_at=analyzed_at,
            display_names=display_names,
            analysis_type=analysis_type,
        )
        for index, result in enumerate(ranked)
    ]


def summarize_top(
    records: Sequence[RankedCombination],
    top_n: int = 10,
) -> List[TopCombination]:
    """Rounded view of the first `top_n` rows for the run report."""
    summary = []
    for record in records[:top_n]:
        summary.append(
            TopCombination(
                rank=record.rank,
                entities=[
                    record.display_name_1 or record.entity_id_1,
                    record.display_name_2 or record.entity_id_2,
                ],
                aic=round(record.aic, 2),
                odds_ratio=round(record.odds_ratio, 2),
                lift=round(record.lift, 2),
                conversion_rate=round(record.conversion_rate_in_group * 100, 2),
            )
        )
    return summary


def persist_ranked(
    sink: ResultSink,
    analysis_type: str,
    records: Sequence[RankedCombination],
    batch_size: int = 100,
) -> int:
    """
    Replace the analysis type's output with `records`, written in rank order
    and in batches of `batch_size`. Returns the number of rows written.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")

    sink.begin(analysis_type)
    for start in range(0, len(records), batch_size):
        sink.write_batch(list(records[start:start + batch_size]))
    sink.finish()

    logger.info(f"Stored {len(records)} {analysis_type} combinations")
    return len(records)
