"""Search engine: exhaustive 2-way conversion pattern search over one rowset."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import islice
from typing import Iterable, List, Optional, Tuple

from contracts import (
    AnalysisConfig,
    AnalysisReport,
    AnalysisStatus,
    CombinationResult,
    Observation,
    RankedCombination,
    SearchStats,
)
from conversion_patterns.analysis.aggregator import aggregate_users, build_display_names
from conversion_patterns.analysis.combinations import count_combinations, generate_pairs
from conversion_patterns.analysis.deadline import Deadline
from conversion_patterns.analysis.entity_filter import count_entity_exposures, select_candidates
from conversion_patterns.analysis.evaluator import CombinationEvaluator
from conversion_patterns.analysis.ranker import (
    apply_keep_filter,
    build_ranked_records,
    persist_ranked,
    rank_results,
    summarize_top,
)
from conversion_patterns.analysis.strategies import get_analysis_type
from conversion_patterns.core.errors import UpstreamIOError
from conversion_patterns.core.reproducibility import compute_dict_hash
from conversion_patterns.core.result_store import ResultSink


logger = logging.getLogger(__name__)

PROGRESS_EVERY = 1000


@dataclass
class SearchOutcome:
    """Report plus the ranked rows (empty unless something was kept)."""
    report: AnalysisReport
    records: List[RankedCombination] = field(default_factory=list)

    @property
    def status(self) -> AnalysisStatus:
        return self.report.status


@dataclass
class _SearchInput:
    rows: List[Observation]
    entity_ids: List[str]
    evaluator: CombinationEvaluator


class _InsufficientData(Exception):
    """Raised while preparing a search that has nothing to evaluate."""


class PatternSearchEngine:
    """
    Runs one analysis: aggregate users, pick candidate entities, evaluate
    every pair, rank the survivors and hand them to the sink.

    Pairs are evaluated in chunks of `eval_concurrency` on a thread pool;
    the deadline is checked between chunks only. When it fires, the results
    gathered so far are ranked and written like a full run and the report
    carries status `partial` with the covered fraction.

    Loading, aggregation and sink writes run on the same pool, so an event
    loop awaiting `run_async` stays responsive.
    """

    def __init__(self, config: AnalysisConfig, sink: Optional[ResultSink] = None):
        self.config = config.validate()
        self.spec = get_analysis_type(config.analysis_type)
        self.ranking_rule = config.ranking_rule or self.spec.default_ranking_rule
        self.sink = sink

    @property
    def analysis_type(self) -> str:
        return self.config.analysis_type

    def make_deadline(self) -> Deadline:
        """Deadline built from the configured time budget."""
        return Deadline(
            budget_seconds=self.config.time_budget_seconds,
            margin_seconds=self.config.deadline_margin_seconds,
        )

    def run(
        self,
        observations: Iterable[Observation],
        deadline: Optional[Deadline] = None,
        analyzed_at: Optional[str] = None,
    ) -> SearchOutcome:
        """Blocking entry point (not for use inside a running event loop)."""
        return asyncio.run(self.run_async(observations, deadline=deadline, analyzed_at=analyzed_at))

    async def run_async(
        self,
        observations: Iterable[Observation],
        deadline: Optional[Deadline] = None,
        analyzed_at: Optional[str] = None,
    ) -> SearchOutcome:
        analyzed_at = analyzed_at or datetime.now(timezone.utc).isoformat()
        deadline = deadline or self.make_deadline()
        stats = SearchStats()
        loop = asyncio.get_running_loop()

        logger.info(f"Starting {self.analysis_type} pattern analysis...")
        with ThreadPoolExecutor(
            max_workers=self.config.eval_concurrency, thread_name_prefix="pattern-eval"
        ) as pool:
            # loading, aggregation, matrix build and sink writes all block
            try:
                prepared = await loop.run_in_executor(pool, self._prepare, observations, stats)
            except _InsufficientData as exc:
                return self._insufficient(stats, analyzed_at, str(exc))

            results, stopped_early = await self._search(pool, prepared, deadline, stats)
            records = await loop.run_in_executor(
                pool, self._rank_and_persist, results, prepared.rows, analyzed_at
            )

        stats.combinations_kept = len(records)
        if stopped_early:
            status = AnalysisStatus.PARTIAL
            warning = (
                f"Time budget exhausted: evaluated {stats.combinations_evaluated}/"
                f"{stats.combinations_total} combinations ({stats.coverage:.1%}); partial results stored"
            )
        else:
            status = AnalysisStatus.COMPLETED
            warning = None
            if not records:
                warning = "No combinations passed the keep filter (need an exposed user and a conversion)"

        logger.info(
            f"Completed {self.analysis_type} pattern analysis: {len(records)} combinations with results "
            f"({stats.combinations_evaluated}/{stats.combinations_total} evaluated)"
        )
        report = self._report(stats, analyzed_at, status, warning)
        report.top_combinations = summarize_top(records, self.config.top_n_summary)
        return SearchOutcome(report=report, records=records)

    def _prepare(self, observations: Iterable[Observation], stats: SearchStats) -> _SearchInput:
        """Load rows, fold users, pick candidates and lay out the evaluator."""
        rows = self._materialize(observations)
        stats.rows_loaded = len(rows)
        if not rows:
            raise _InsufficientData("No engagement data found")

        aggregation = aggregate_users(rows)
        users = aggregation.users
        stats.rows_skipped = aggregation.rows_skipped
        stats.users_analyzed = len(users)
        logger.info(f"Converted {len(rows)} rows to {len(users)} unique users")

        min_population = self.config.min_population_for_analysis
        if len(users) < min_population:
            raise _InsufficientData(
                f"Insufficient data for pattern analysis (need {min_population}+ users, found {len(users)})"
            )

        exposure_counts = count_entity_exposures(users)
        candidates = select_candidates(
            exposure_counts,
            min_users=self.config.min_users_per_entity,
            max_entities=self.config.max_entities,
        )
        stats.entities_available = len(exposure_counts)
        stats.entities_tested = len(candidates)
        if len(candidates) < 2:
            raise _InsufficientData(
                f"Insufficient {self.spec.entity_kind}s for pattern analysis "
                f"(need 2+ with >={self.config.min_users_per_entity} exposed users, found {len(candidates)})"
            )

        entity_ids = [c.entity_id for c in candidates]
        stats.combinations_total = count_combinations(len(entity_ids))
        logger.info(
            f"Testing {stats.combinations_total} 2-way combinations from {len(entity_ids)} "
            f"{self.spec.entity_kind}s ({stats.entities_available} total available, "
            f"capped at {self.config.max_entities})"
        )

        evaluator = CombinationEvaluator(
            users,
            entity_ids,
            observations=rows,
            max_iterations=self.config.max_newton_iterations,
        )
        return _SearchInput(rows=rows, entity_ids=entity_ids, evaluator=evaluator)

    async def _search(
        self,
        pool: ThreadPoolExecutor,
        prepared: _SearchInput,
        deadline: Deadline,
        stats: SearchStats,
    ) -> Tuple[List[CombinationResult], bool]:
        loop = asyncio.get_running_loop()
        concurrency = self.config.eval_concurrency
        evaluator = prepared.evaluator
        pairs = generate_pairs(prepared.entity_ids)
        results: List[CombinationResult] = []
        stopped_early = False

        while True:
            if stats.combinations_evaluated < stats.combinations_total and deadline.expired():
                stopped_early = True
                logger.warning(
                    f"Stopping early: {stats.combinations_evaluated}/{stats.combinations_total} "
                    f"combinations evaluated before the deadline"
                )
                break

            chunk = list(islice(pairs, concurrency))
            if not chunk:
                break

            # gather keeps submission order, so results stay in pair order
            chunk_results = await asyncio.gather(
                *(loop.run_in_executor(pool, evaluator.evaluate, pair) for pair in chunk)
            )
            results.extend(chunk_results)

            before = stats.combinations_evaluated
            stats.combinations_evaluated += len(chunk)
            if stats.combinations_evaluated // PROGRESS_EVERY > before // PROGRESS_EVERY:
                logger.info(
                    f"Progress: {stats.combinations_evaluated}/{stats.combinations_total} "
                    f"combinations evaluated"
                )

        return results, stopped_early

    def _rank_and_persist(
        self,
        results: List[CombinationResult],
        rows: List[Observation],
        analyzed_at: str,
    ) -> List[RankedCombination]:
        ranked = rank_results(apply_keep_filter(results), self.ranking_rule)
        records = build_ranked_records(
            ranked,
            analyzed_at=analyzed_at,
            display_names=build_display_names(rows),
            analysis_type=self.analysis_type,
        )
        self._persist(records)
        return records

    def _materialize(self, observations: Iterable[Observation]) -> List[Observation]:
        try:
            return list(observations)
        except OSError as exc:
            raise UpstreamIOError(f"Failed to load {self.analysis_type} observations: {exc}") from exc

    def _persist(self, records: List[RankedCombination]) -> None:
        if self.sink is None:
            return
        try:
            persist_ranked(self.sink, self.analysis_type, records, batch_size=self.config.write_batch_size)
        except OSError as exc:
            raise UpstreamIOError(f"Failed to store {self.analysis_type} results: {exc}") from exc

    def _insufficient(self, stats: SearchStats, analyzed_at: str, warning: str) -> SearchOutcome:
        # prior output stays in place; nothing new to replace it with
        logger.warning(warning)
        return SearchOutcome(
            report=self._report(stats, analyzed_at, AnalysisStatus.INSUFFICIENT_DATA, warning)
        )

    def _report(
        self,
        stats: SearchStats,
        analyzed_at: str,
        status: AnalysisStatus,
        warning: Optional[str],
    ) -> AnalysisReport:
        return AnalysisReport(
            analysis_type=self.analysis_type,
            status=status,
            analyzed_at=analyzed_at,
            stats=stats,
            warning=warning,
            ranking_rule=self.ranking_rule.value,
            config_hash=compute_dict_hash(self.config.to_dict()),
        )
