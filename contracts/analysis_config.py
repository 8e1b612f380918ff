"""Analysis config schema: thresholds, search limits, ranking and run-time budget."""

from typing import Any, Dict, Optional
from dataclasses import dataclass, field, asdict, fields
from enum import Enum
import json


class RankingRule(str, Enum):
    """How surviving combinations are ordered."""
    AIC_ASCENDING = "aic_ascending"
    LIFT_TIMES_CONVERSIONS_DESCENDING = "lift_times_conversions_descending"


@dataclass
class AnalysisConfig:
    """
    Configuration of one conversion pattern analysis run.
    Loaded from the `analysis` section of the run YAML.
    """
    analysis_type: str = "subscription"

    # Candidate selection
    min_users_per_entity: int = 1
    max_entities: int = 200
    min_population_for_analysis: int = 50

    # Model fitting
    max_newton_iterations: int = 20

    # None -> use the analysis type's default rule
    ranking_rule: Optional[RankingRule] = None

    # Execution
    eval_concurrency: int = 4
    write_batch_size: int = 100
    time_budget_seconds: Optional[float] = None  # None = unbounded
    deadline_margin_seconds: float = 5.0

    # Report
    top_n_summary: int = 10

    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.ranking_rule is not None and not isinstance(self.ranking_rule, RankingRule):
            self.ranking_rule = RankingRule(self.ranking_rule)

    def validate(self) -> "AnalysisConfig":
        """Raise ValueError on out-of-range values; returns self for chaining."""
        if not self.analysis_type:
            raise ValueError("analysis_type must not be empty")
        if self.min_users_per_entity < 1:
            raise ValueError("min_users_per_entity must be >= 1")
        if self.max_entities < 2:
            raise ValueError("max_entities must be >= 2")
        if self.min_population_for_analysis < 1:
            raise ValueError("min_population_for_analysis must be >= 1")
        if self.max_newton_iterations < 1:
            raise ValueError("max_newton_iterations must be >= 1")
        if self.eval_concurrency < 1:
            raise ValueError("eval_concurrency must be >= 1")
        if self.write_batch_size < 1:
            raise ValueError("write_batch_size must be >= 1")
        if self.time_budget_seconds is not None and self.time_budget_seconds <= 0:
            raise ValueError("time_budget_seconds must be positive when set")
        if self.deadline_margin_seconds < 0:
            raise ValueError("deadline_margin_seconds must be >= 0")
        return self

    def with_overrides(self, **overrides: Any) -> "AnalysisConfig":
        """Return a copy with non-None overrides applied."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return AnalysisConfig.from_dict(data)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = asdict(self)
        if self.ranking_rule is not None:
            data["ranking_rule"] = self.ranking_rule.value
        return data

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AnalysisConfig":
        """Create from dictionary; unknown keys are rejected."""
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown analysis config keys: {', '.join(unknown)}")
        return cls(**data).validate()

    @classmethod
    def from_json(cls, json_str: str) -> "AnalysisConfig":
        """Create from JSON string."""
        return cls.from_dict(json.loads(json_str))
