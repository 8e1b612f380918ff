"""Shared fixtures: the 100-user A/B/C exposure scenario."""

from typing import List

import pandas as pd
import pytest

from contracts import Observation


# users 0-39 saw A, users 0-14 and 40-59 saw B, users 60-99 saw C
# converters: 0-5 (inside the A+B cohort) and 60-73 (C only) -> 20 of 100
CONVERTERS = set(range(0, 6)) | set(range(60, 74))
DISPLAY_NAMES = {"A": "alpha", "B": "bravo", "C": "charlie"}


def _entities_for(i: int) -> List[str]:
    entities = []
    if i < 40:
        entities.append("A")
    if i < 15 or 40 <= i < 60:
        entities.append("B")
    if i >= 60:
        entities.append("C")
    return entities


def build_scenario_observations() -> List[Observation]:
    rows = []
    for i in range(100):
        converted = i in CONVERTERS
        for entity_id in _entities_for(i):
            rows.append(
                Observation(
                    user_id=f"user_{i:03d}",
                    entity_id=entity_id,
                    exposure_count=2,
                    outcome_flag=converted,
                    outcome_count=1 if converted else 0,
                    display_name=DISPLAY_NAMES[entity_id],
                )
            )
    return rows


def build_scenario_frame() -> pd.DataFrame:
    """Same scenario in the subscription source table layout."""
    return pd.DataFrame(
        [
            {
                "distinct_id": obs.user_id,
                "creator_id": obs.entity_id,
                "creator_username": obs.display_name,
                "profile_view_count": obs.exposure_count,
                "did_subscribe": obs.outcome_flag,
                "subscription_count": obs.outcome_count,
            }
            for obs in build_scenario_observations()
        ]
    )


@pytest.fixture
def scenario_observations() -> List[Observation]:
    return build_scenario_observations()


@pytest.fixture
def scenario_frame() -> pd.DataFrame:
    return build_scenario_frame()


@pytest.fixture
def run_config(tmp_path, scenario_frame):
    """Run config with the scenario written to CSV under tmp_path."""
    input_path = tmp_path / "user_creator_engagement.csv"
    scenario_frame.to_csv(input_path, index=False)
    return {
        "analysis": {
            "min_population_for_analysis": 50,
            "eval_concurrency": 2,
            "write_batch_size": 2,
        },
        "io": {
            "output_root": str(tmp_path / "outputs"),
            "format": "csv",
        },
        "analysis_types": {
            "subscription": {
                "adapter": {
                    "class_path": "conversion_patterns.data.adapters.table.TableObservationAdapter",
                    "params": {"input_path": str(input_path)},
                },
            },
        },
    }
