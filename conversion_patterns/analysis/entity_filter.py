"""Entity filter: the most exposed entities become search candidates."""

import logging
from collections import Counter
from typing import Dict, List, Mapping

from contracts import CandidateEntity, UserRecord


logger = logging.getLogger(__name__)


def count_entity_exposures(users: Mapping[str, UserRecord]) -> Dict[str, int]:
    """Distinct users per entity."""
    counts: Counter = Counter()
    for user in users.values():
        counts.update(user.entity_ids)
    return dict(counts)


def select_candidates(
    exposure_counts: Mapping[str, int],
    min_users: int = 1,
    max_entities: int = 200,
) -> List[CandidateEntity]:
    """
    Entities with at least `min_users` exposed users, most exposed first,
    capped at `max_entities`.

    Equal counts are ordered by entity_id so the list does not depend on
    dict iteration order.
    """
    eligible = [
        CandidateEntity(entity_id=entity_id, exposure_user_count=count)
        for entity_id, count in exposure_counts.items()
        if count >= min_users
    ]
    eligible.sort(key=lambda c: (-c.exposure_user_count, c.entity_id))
    return eligible[:max_entities]


def filter_entities(
    users: Mapping[str, UserRecord],
    min_users: int = 1,
    max_entities: int = 200,
) -> List[CandidateEntity]:
    """Count exposures and select candidates in one call."""
    counts = count_entity_exposures(users)
    candidates = select_candidates(counts, min_users=min_users, max_entities=max_entities)
    logger.info(
        f"Found {len(candidates)} entities with >={min_users} user exposures "
        f"({len(counts)} total available, capped at {max_entities})"
    )
    return candidates
