"""Combination schema: candidate entities, per-pair scores, and ranked output rows."""

from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field, asdict
import json


@dataclass(frozen=True)
class CandidateEntity:
    """Entity that survived the exposure threshold."""
    entity_id: str
    exposure_user_count: int  # distinct users exposed to this entity


@dataclass(frozen=True)
class CombinationResult:
    """
    Scores of one entity pair. Created once per evaluated combination and
    never mutated; either discarded by the keep filter or ranked and written.
    """
    combination: Tuple[str, str]
    log_likelihood: float
    aic: float
    odds_ratio: float
    precision: float
    recall: float
    lift: float
    users_with_exposure: int  # users exposed to BOTH entities
    conversion_rate_in_group: float
    overall_conversion_rate: float
    total_conversions: int  # converters among the exposed cohort

    # Business totals, only when auxiliary observation rows were supplied
    total_views_1: Optional[int] = None
    total_views_2: Optional[int] = None
    total_copies: Optional[int] = None

    @property
    def expected_value(self) -> float:
        """Lift weighted by reach (lift x total_conversions)."""
        return self.lift * self.total_conversions

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = asdict(self)
        data["combination"] = list(self.combination)
        return data


@dataclass
class RankedCombination:
    """
    Output record handed to the persistence layer.
    Replaces any earlier output of the same analysis type.
    """
    rank: int  # 1-based
    entity_id_1: str
    entity_id_2: str
    log_likelihood: float
    aic: float
    odds_ratio: float
    precision: float
    recall: float
    lift: float
    users_with_exposure: int
    conversion_rate_in_group: float
    overall_conversion_rate: float
    total_conversions: int
    analyzed_at: str  # ISO format

    display_name_1: Optional[str] = None
    display_name_2: Optional[str] = None
    total_views_1: Optional[int] = None
    total_views_2: Optional[int] = None
    total_copies: Optional[int] = None
    analysis_type: Optional[str] = None

    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_result(
        cls,
        rank: int,
        result: CombinationResult,
        analyzed_at: str,
        display_names: Optional[Dict[str, str]] = None,
        analysis_type: Optional[str] = None,
    ) -> "RankedCombination":
        """Build an output row from an evaluated combination."""
        display_names = display_names or {}
        entity_id_1, entity_id_2 = result.combination
        return cls(
            rank=rank,
            entity_id_1=entity_id_1,
            entity_id_2=entity_id_2,
            log_likelihood=result.log_likelihood,
            aic=result.aic,
            odds_ratio=result.odds_ratio,
            precision=result.precision,
            recall=result.recall,
            lift=result.lift,
            users_with_exposure=result.users_with_exposure,
            conversion_rate_in_group=result.conversion_rate_in_group,
            overall_conversion_rate=result.overall_conversion_rate,
            total_conversions=result.total_conversions,
            analyzed_at=analyzed_at,
            display_name_1=display_names.get(entity_id_1),
            display_name_2=display_names.get(entity_id_2),
            total_views_1=result.total_views_1,
            total_views_2=result.total_views_2,
            total_copies=result.total_copies,
            analysis_type=analysis_type,
        )

    def to_row(self) -> Dict[str, Any]:
        """Flat row in OUTPUT_COLUMNS order (no metadata)."""
        data = asdict(self)
        return {column: data[column] for column in OUTPUT_COLUMNS}

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RankedCombination":
        """Create from dictionary, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in _FIELD_NAMES}
        return cls(**known)


OUTPUT_COLUMNS: List[str] = [
    "analysis_type",
    "rank",
    "entity_id_1",
    "entity_id_2",
    "display_name_1",
    "display_name_2",
    "total_views_1",
    "total_views_2",
    "total_copies",
    "log_likelihood",
    "aic",
    "odds_ratio",
    "precision",
    "recall",
    "lift",
    "users_with_exposure",
    "conversion_rate_in_group",
    "overall_conversion_rate",
    "total_conversions",
    "analyzed_at",
]

_FIELD_NAMES = set(RankedCombination.__dataclass_fields__)
