"""Analysis report schema: run outcome, search coverage and the top combinations."""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field, asdict
from enum import Enum
import json


class AnalysisStatus(str, Enum):
    """Outcome of an analysis run. None of them is a failure."""
    COMPLETED = "completed"
    PARTIAL = "partial"  # time budget ran out, partial results flushed
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass
class SearchStats:
    """Counters describing how much of the search space was covered."""
    rows_loaded: int = 0
    rows_skipped: int = 0
    users_analyzed: int = 0
    entities_available: int = 0
    entities_tested: int = 0
    combinations_total: int = 0
    combinations_evaluated: int = 0
    combinations_kept: int = 0

    @property
    def coverage(self) -> float:
        """Fraction of the combination space that was evaluated."""
        if self.combinations_total == 0:
            return 0.0
        return self.combinations_evaluated / self.combinations_total


@dataclass
class TopCombination:
    """Rounded summary of one of the best combinations."""
    rank: int
    entities: List[str]
    aic: float
    odds_ratio: float
    lift: float
    conversion_rate: float  # percent


@dataclass
class AnalysisReport:
    """
    Result envelope returned to callers and stored next to the output table.
    Callers always get one of the three statuses, never a bare empty list.
    """
    analysis_type: str
    status: AnalysisStatus
    analyzed_at: str  # ISO format
    stats: SearchStats = field(default_factory=SearchStats)
    warning: Optional[str] = None
    ranking_rule: Optional[str] = None
    top_combinations: List[TopCombination] = field(default_factory=list)
    config_hash: Optional[str] = None

    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        """Insufficient data and partial runs are successful outcomes too."""
        return True

    @property
    def coverage(self) -> float:
        """Shortcut to stats.coverage."""
        return self.stats.coverage

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = asdict(self)
        data["status"] = self.status.value
        data["success"] = self.success
        data["stats"]["coverage"] = round(self.stats.coverage, 6)
        return data

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> "AnalysisReport":
        """Create from JSON string."""
        data = json.loads(json_str)
        data.pop("success", None)

        # Reconstruct nested objects
        data["status"] = AnalysisStatus(data["status"])
        if data.get("stats"):
            stats = dict(data["stats"])
            stats.pop("coverage", None)
            data["stats"] = SearchStats(**stats)
        data["top_combinations"] = [
            TopCombination(**item) for item in data.get("top_combinations") or []
        ]
        return cls(**data)
