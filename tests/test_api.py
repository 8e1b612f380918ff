"""Test the FastAPI endpoints."""

import pytest
from fastapi.testclient import TestClient

from conversion_patterns.api.app import app
from conversion_patterns.api.routes_analyses import get_run_config


@pytest.fixture
def client(run_config):
    app.dependency_overrides[get_run_config] = lambda: run_config
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_root(client):
    """Root endpoint reports the API version."""
    response = client.get("/")
    assert response.status_code == 200
    assert "version" in response.json()


def test_list_analysis_types(client):
    """All registered types are listed with their default rule."""
    response = client.get("/api/analyses")
    
    assert response.status_code == 200
    types = {item["name"]: item for item in response.json()}
    assert set(types) == {"subscription", "copy", "creator_copy"}
    assert types["creator_copy"]["default_ranking_rule"] == "lift_times_conversions_descending"


def test_run_then_fetch_results(client):
    """Running stores the ranked table that the results endpoint returns."""
    response = client.post("/api/analyses/subscription/run")
    
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "completed"
    assert body["stats"]["combinations_kept"] == 1
    assert body["top_combinations"][0]["entities"] == ["alpha", "bravo"]
    
    response = client.get("/api/analyses/subscription/results")
    assert response.status_code == 200
    results = response.json()
    assert results["count"] == 1
    assert results["analyzed_at"]
    row = results["rows"][0]
    assert row["rank"] == 1
    assert (row["entity_id_1"], row["entity_id_2"]) == ("A", "B")
    assert row["users_with_exposure"] == 15


def test_run_with_ranking_rule(client):
    """The request body can override the ranking rule."""
    response = client.post(
        "/api/analyses/subscription/run",
        json={"ranking_rule": "lift_times_conversions_descending"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"


def test_invalid_ranking_rule_is_rejected(client):
    """Unknown rules fail request validation."""
    response = client.post("/api/analyses/subscription/run", json={"ranking_rule": "most_clicks"})
    assert response.status_code == 422


def test_unknown_type_is_bad_request(client):
    """Unregistered analysis types return 400 with an error envelope."""
    response = client.post("/api/analyses/follow/run")
    
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "follow" in body["error"]
    
    assert client.get("/api/analyses/follow/results").status_code == 400


def test_results_before_any_run(client):
    """Nothing stored yet is a 404."""
    response = client.get("/api/analyses/copy/results")
    
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_upstream_failure_is_server_error(client, tmp_path):
    """An unreadable source surfaces as 500."""
    response = client.post(
        "/api/analyses/subscription/run",
        json={"input_path": str(tmp_path / "missing.csv")},
    )
    assert response.status_code == 500
    assert response.json()["success"] is False


def test_insufficient_data_is_successful(client, tmp_path):
    """Too few users is reported with success=True and a warning."""
    path = tmp_path / "tiny.csv"
    path.write_text(
        "distinct_id,creator_id,profile_view_count,did_subscribe\n"
        "u1,A,1,true\n"
        "u2,B,1,false\n",
        encoding="utf-8",
    )
    response = client.post("/api/analyses/subscription/run", json={"input_path": str(path)})
    
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "insufficient_data"
    assert "Insufficient data" in body["warning"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
