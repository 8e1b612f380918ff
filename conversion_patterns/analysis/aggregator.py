"""User aggregation: fold exposure rows into one record per user."""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple

from contracts import Observation, UserRecord


logger = logging.getLogger(__name__)


@dataclass
class _UserAccumulator:
    entity_ids: set
    converted: bool
    outcome_total: int


@dataclass(frozen=True)
class AggregationResult:
    """Users keyed by id plus how many input rows were unusable."""
    users: Mapping[str, UserRecord]
    rows_seen: int
    rows_skipped: int


def aggregate_users(observations: Iterable[Observation]) -> AggregationResult:
    """
    Build `user_id -> UserRecord` from the full observation stream.

    `converted` is OR-ed across a user's rows and `outcome_total` sums their
    outcome counts. Rows missing a user or entity id are skipped. Users are
    kept in first-seen order.
    """
    acc: Dict[str, _UserAccumulator] = {}
    rows_seen = 0
    rows_skipped = 0

    for obs in observations:
        rows_seen += 1
        if not obs.is_complete:
            rows_skipped += 1
            continue

        current = acc.get(obs.user_id)
        if current is None:
            acc[obs.user_id] = _UserAccumulator(
                entity_ids={obs.entity_id},
                converted=bool(obs.outcome_flag),
                outcome_total=obs.outcome_count,
            )
        else:
            current.entity_ids.add(obs.entity_id)
            current.converted = current.converted or bool(obs.outcome_flag)
            current.outcome_total += obs.outcome_count

    if rows_skipped:
        logger.debug(f"Skipped {rows_skipped} rows without user_id or entity_id")

    users = {
        user_id: UserRecord(
            user_id=user_id,
            entity_ids=frozenset(a.entity_ids),
            converted=a.converted,
            outcome_total=a.outcome_total,
        )
        for user_id, a in acc.items()
    }
    return AggregationResult(users=users, rows_seen=rows_seen, rows_skipped=rows_skipped)


def build_display_names(observations: Iterable[Observation]) -> Dict[str, str]:
    """First non-empty display name seen for each entity."""
    names: Dict[str, str] = {}
    for obs in observations:
        if obs.entity_id and obs.display_name and obs.entity_id not in names:
            names[obs.entity_id] = obs.display_name
    return names


def index_pair_counts(
    observations: Iterable[Observation],
    entity_ids: Optional[Iterable[str]] = None,
) -> Dict[Tuple[str, str], Tuple[int, int]]:
    """
    Sum `(exposure_count, outcome_count)` per (user, entity).

    Restricted to `entity_ids` when given. Feeds the business totals of the
    evaluator.
    """
    wanted = set(entity_ids) if entity_ids is not None else None
    totals: Dict[Tuple[str, str], Tuple[int, int]] = {}
    for obs in observations:
        if not obs.is_complete:
            continue
        if wanted is not None and obs.entity_id not in wanted:
            continue
        key = (obs.user_id, obs.entity_id)
        views, outcomes = totals.get(key, (0, 0))
        totals[key] = (views + obs.exposure_count, outcomes + obs.outcome_count)
    return totals
