"""Test candidate selection and pair generation."""

import pytest
from contracts import UserRecord
from conversion_patterns.analysis.aggregator import aggregate_users
from conversion_patterns.analysis.combinations import count_combinations, generate_pairs
from conversion_patterns.analysis.entity_filter import (
    count_entity_exposures,
    filter_entities,
    select_candidates,
)


def test_counts_are_distinct_users(scenario_observations):
    """Exposure counts are per distinct user, not per row."""
    users = aggregate_users(scenario_observations).users
    assert count_entity_exposures(users) == {"A": 40, "B": 35, "C": 40}


def test_sorted_descending_with_id_tie_break(scenario_observations):
    """Most exposed first; equal counts ordered by entity id."""
    users = aggregate_users(scenario_observations).users
    candidates = filter_entities(users)
    
    assert [c.entity_id for c in candidates] == ["A", "C", "B"]
    assert [c.exposure_user_count for c in candidates] == [40, 40, 35]


def test_filter_is_idempotent_with_ties():
    """Filtering the same users twice gives the same list and order."""
    users = {
        f"u{i}": UserRecord(f"u{i}", frozenset(entities), converted=False)
        for i, entities in enumerate([{"Z", "M"}, {"M", "A"}, {"A", "Z"}, {"Q"}])
    }
    first = filter_entities(users)
    second = filter_entities(users)
    
    assert first == second
    assert [c.entity_id for c in first] == ["A", "M", "Z", "Q"]


def test_threshold_excludes_rare_entities():
    """Entities below min_users never become candidates."""
    counts = {"A": 5, "B": 2, "C": 1}
    candidates = select_candidates(counts, min_users=2)
    
    assert [c.entity_id for c in candidates] == ["A", "B"]
    assert all(c.exposure_user_count >= 2 for c in candidates)


def test_cap_keeps_most_exposed():
    """Above the cap, only the top max_entities survive."""
    counts = {f"e{i:03d}": i + 1 for i in range(250)}
    candidates = select_candidates(counts, max_entities=200)
    
    assert len(candidates) == 200
    assert candidates[0].entity_id == "e249"
    assert min(c.exposure_user_count for c in candidates) == 51


def test_no_users_no_candidates():
    """An empty population yields no candidates."""
    assert select_candidates(count_entity_exposures({})) == []


def test_single_user_single_entity():
    """One user exposed to one entity produces one candidate."""
    users = {"u1": UserRecord("u1", frozenset({"A"}), converted=True)}
    candidates = filter_entities(users)
    assert [c.entity_id for c in candidates] == ["A"]


def test_pairs_in_list_order():
    """Pairs come out as (list[i], list[j]) with i < j."""
    pairs = list(generate_pairs(["A", "C", "B"]))
    assert pairs == [("A", "C"), ("A", "B"), ("C", "B")]


def test_pair_count_matches_formula():
    """K candidates give K*(K-1)/2 distinct unordered pairs."""
    ids = [f"e{i}" for i in range(20)]
    pairs = list(generate_pairs(ids))
    
    assert len(pairs) == count_combinations(20) == 190
    assert len({frozenset(p) for p in pairs}) == 190
    assert all(a != b for a, b in pairs)


def test_generator_restarts_after_exhaustion():
    """A fresh call replays the full sequence after a first run was consumed."""
    ids = ["A", "C", "B", "D"]
    first = list(generate_pairs(ids))
    second = list(generate_pairs(ids))
    
    assert first == second
    assert len(second) == 6


def test_fewer_than_two_entities_yield_nothing():
    """Zero or one candidate means an empty sequence."""
    assert list(generate_pairs([])) == []
    assert list(generate_pairs(["A"])) == []
    assert count_combinations(1) == 0


def test_generator_is_lazy():
    """Pairs are produced on demand."""
    pairs = generate_pairs([f"e{i}" for i in range(200)])
    assert next(pairs) == ("e0", "e1")
    assert next(pairs) == ("e0", "e2")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
