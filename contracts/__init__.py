"""Contracts: Core data schemas shared by the conversion pattern analysis."""

from .observation import Observation, UserRecord, CANONICAL_COLUMNS
from .combination import CandidateEntity, CombinationResult, RankedCombination, OUTPUT_COLUMNS
from .analysis_config import AnalysisConfig, RankingRule
from .analysis_report import AnalysisReport, AnalysisStatus, SearchStats, TopCombination

__all__ = [
    "Observation",
    "UserRecord",
    "CANONICAL_COLUMNS",
    "CandidateEntity",
    "CombinationResult",
    "RankedCombination",
    "OUTPUT_COLUMNS",
    "AnalysisConfig",
    "RankingRule",
    "AnalysisReport",
    "AnalysisStatus",
    "SearchStats",
    "TopCombination",
]
