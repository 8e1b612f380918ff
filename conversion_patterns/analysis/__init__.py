"""Conversion pattern search: aggregation, candidate selection, fitting, ranking."""

from .aggregator import aggregate_users, build_display_names, AggregationResult
from .entity_filter import count_entity_exposures, select_candidates, filter_entities
from .combinations import count_combinations, generate_pairs
from .logistic import fit_logistic_regression, LogisticFit
from .evaluator import CombinationEvaluator, evaluate_combination
from .ranker import apply_keep_filter, passes_keep_filter, rank_results, build_ranked_records
from .deadline import Deadline
from .engine import PatternSearchEngine, SearchOutcome
from .strategies import AnalysisTypeSpec, analysis_types, get_analysis_type

__all__ = [
    "aggregate_users",
    "build_display_names",
    "AggregationResult",
    "count_entity_exposures",
    "select_candidates",
    "filter_entities",
    "count_combinations",
    "generate_pairs",
    "fit_logistic_regression",
    "LogisticFit",
    "CombinationEvaluator",
    "evaluate_combination",
    "apply_keep_filter",
    "passes_keep_filter",
    "rank_results",
    "build_ranked_records",
    "Deadline",
    "PatternSearchEngine",
    "SearchOutcome",
    "AnalysisTypeSpec",
    "analysis_types",
    "get_analysis_type",
]
