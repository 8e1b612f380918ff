"""Analysis types: where each one finds its entity, exposure and outcome columns."""

from typing import Dict, List, Optional
from dataclasses import dataclass

import pandas as pd

from contracts import CANONICAL_COLUMNS, RankingRule
from conversion_patterns.core.errors import UnknownAnalysisTypeError
from conversion_patterns.core.registry import Registry


@dataclass(frozen=True)
class AnalysisTypeSpec:
    """
    Extraction strategy for one analysis type.

    The search itself is identical for every type; only the mapping from the
    upstream engagement table to canonical observation columns differs.
    """
    name: str
    entity_kind: str  # "creator" or "portfolio"
    user_column: str
    entity_column: str
    exposure_column: str
    outcome_flag_column: str
    outcome_count_column: Optional[str] = None
    display_name_column: Optional[str] = None
    default_ranking_rule: RankingRule = RankingRule.AIC_ASCENDING
    description: str = ""

    @property
    def column_map(self) -> Dict[str, str]:
        """Source column -> canonical column."""
        mapping = {
            self.user_column: "user_id",
            self.entity_column: "entity_id",
            self.exposure_column: "exposure_count",
            self.outcome_flag_column: "outcome_flag",
        }
        if self.outcome_count_column:
            mapping[self.outcome_count_column] = "outcome_count"
        if self.display_name_column:
            mapping[self.display_name_column] = "display_name"
        return mapping

    @property
    def required_columns(self) -> List[str]:
        return [self.user_column, self.entity_column, self.exposure_column, self.outcome_flag_column]

    @property
    def source_columns(self) -> List[str]:
        """Columns worth reading from the upstream table."""
        return list(self.column_map)

    def canonicalize(self, raw_df: pd.DataFrame, drop_unexposed: bool = True) -> pd.DataFrame:
        """
        Map an upstream chunk onto CANONICAL_COLUMNS.

        Optional columns that are absent become 0 / None. With
        `drop_unexposed`, rows whose exposure metric is not positive are
        removed, mirroring the `exposure > 0` filter of the upstream query.
        """
        missing = [c for c in self.required_columns if c not in raw_df.columns]
        if missing:
            raise ValueError(
                f"{self.name} observations missing columns: {', '.join(missing)}"
            )

        present = {src: dst for src, dst in self.column_map.items() if src in raw_df.columns}
        df = raw_df[list(present)].rename(columns=present)

        if "outcome_count" not in df.columns:
            df["outcome_count"] = 0
        if "display_name" not in df.columns:
            df["display_name"] = None

        df["exposure_count"] = pd.to_numeric(df["exposure_count"], errors="coerce").fillna(0)
        df["outcome_count"] = pd.to_numeric(df["outcome_count"], errors="coerce").fillna(0)

        if drop_unexposed:
            df = df[df["exposure_count"] > 0]

        return df[CANONICAL_COLUMNS].reset_index(drop=True)


analysis_types = Registry(kind="analysis type", missing_error=UnknownAnalysisTypeError)

analysis_types.register(
    "subscription",
    AnalysisTypeSpec(
        name="subscription",
        entity_kind="creator",
        user_column="distinct_id",
        entity_column="creator_id",
        exposure_column="profile_view_count",
        outcome_flag_column="did_subscribe",
        outcome_count_column="subscription_count",
        display_name_column="creator_username",
        default_ranking_rule=RankingRule.AIC_ASCENDING,
        description="Creator profile views that predict a subscription",
    ),
)
analysis_types.register(
    "copy",
    AnalysisTypeSpec(
        name="copy",
        entity_kind="portfolio",
        user_column="distinct_id",
        entity_column="portfolio_ticker",
        exposure_column="pdp_view_count",
        outcome_flag_column="did_copy",
        outcome_count_column="copy_count",
        default_ranking_rule=RankingRule.AIC_ASCENDING,
        description="Portfolio detail views that predict a copy",
    ),
)
analysis_types.register(
    "creator_copy",
    AnalysisTypeSpec(
        name="creator_copy",
        entity_kind="creator",
        user_column="distinct_id",
        entity_column="creator_id",
        exposure_column="profile_view_count",
        outcome_flag_column="did_copy",
        outcome_count_column="copy_count",
        display_name_column="creator_username",
        default_ranking_rule=RankingRule.LIFT_TIMES_CONVERSIONS_DESCENDING,
        description="Creator profile views that predict a copy",
    ),
)


def get_analysis_type(name: str) -> AnalysisTypeSpec:
    """Look up a registered analysis type (UnknownAnalysisTypeError if absent)."""
    return analysis_types.get(name)
