"""Observation schema: exposure rows and the per-user records folded from them."""

from typing import Any, Dict, FrozenSet, Optional
from dataclasses import dataclass, asdict

import pandas as pd
from pandas.api.types import is_scalar


# Canonical column order produced by every observation adapter
CANONICAL_COLUMNS = [
    "user_id",
    "entity_id",
    "exposure_count",
    "outcome_flag",
    "outcome_count",
    "display_name",
]


@dataclass(frozen=True)
class Observation:
    """One (user, entity) exposure row scoped to a single analysis type."""
    user_id: str
    entity_id: str
    exposure_count: int = 0
    outcome_flag: bool = False
    outcome_count: int = 0
    display_name: Optional[str] = None  # e.g. creator username

    @property
    def is_complete(self) -> bool:
        """True when both identifiers are present."""
        return bool(self.user_id) and bool(self.entity_id)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "Observation":
        """Create from a canonical row mapping (missing counts default to 0)."""
        display_name = row.get("display_name")
        return cls(
            user_id=_as_id(row.get("user_id")),
            entity_id=_as_id(row.get("entity_id")),
            exposure_count=_as_count(row.get("exposure_count")),
            outcome_flag=_as_flag(row.get("outcome_flag")),
            outcome_count=_as_count(row.get("outcome_count")),
            display_name=_as_id(display_name) or None,
        )


@dataclass(frozen=True)
class UserRecord:
    """
    One record per distinct user: the entities the user was exposed to and
    whether (and how often) the user converted.
    """
    user_id: str
    entity_ids: FrozenSet[str]
    converted: bool
    outcome_total: int = 0


def _is_missing(value: Any) -> bool:
    # None, NaN, NaT and pd.NA from nullable or arrow-backed columns
    return is_scalar(value) and bool(pd.isna(value))


def _as_id(value: Any) -> str:
    if _is_missing(value):
        return ""
    return str(value).strip()


def _as_count(value: Any) -> int:
    if _is_missing(value):
        return 0
    return max(int(float(value)), 0)


def _as_flag(value: Any) -> bool:
    if _is_missing(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "t", "yes", "y")
    return bool(value)
