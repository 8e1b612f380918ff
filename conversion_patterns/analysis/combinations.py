"""Pair generation over the candidate list."""

from typing import Iterator, Sequence, Tuple


def count_combinations(n: int) -> int:
    """Number of unordered pairs over n items."""
    if n < 2:
        return 0
    return n * (n - 1) // 2


def generate_pairs(entity_ids: Sequence[str]) -> Iterator[Tuple[str, str]]:
    """
    Yield `(entity_ids[i], entity_ids[j])` for every i < j, in list order.

    Lazy and side-effect free; call again to restart.
    """
    n = len(entity_ids)
    for i in range(n - 1):
        first = entity_ids[i]
        for j in range(i + 1, n):
            yield first, entity_ids[j]
