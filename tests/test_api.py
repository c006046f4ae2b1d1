"""Tests for the call-handling API."""
import pytest
from unittest.mock import AsyncMock, Mock
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from job_classifier.api import app
from job_classifier.config import ClassifierConfig
from job_classifier.main import call_history
from job_classifier.models import ClassificationResult, RecommendedRoute, TrafficLight
from job_classifier.orchestrator import JobComplexityClassifier


@pytest.fixture
def client():
    app.config["TESTING"] = True
    app.config["CLASSIFIER"] = JobComplexityClassifier(ClassifierConfig(tier2_enabled=False))
    app.config["CLASSIFICATION_LOGGER"] = None
    call_history.clear()
    with app.test_client() as test_client:
        yield test_client
    call_history.clear()
    app.config.pop("CLASSIFIER", None)
    app.config.pop("CLASSIFICATION_LOGGER", None)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "healthy"


def test_classify_single_job(client):
    response = client.post("/api/classify", json={"description": "gas leak in kitchen"})

    assert response.status_code == 200
    data = response.get_json()
    assert data["result"]["traffic_light"] == "red"
    assert data["result"]["recommended_route"] == "refer"
    assert data["result"]["tier"] == 1
    assert "processing_time_ms" in data


def test_classify_requires_description(client):
    response = client.post("/api/classify", json={"matched": True})
    assert response.status_code == 400


def test_classify_rejects_non_boolean_use_tier2(client):
    response = client.post("/api/classify", json={"description": "tap", "use_tier2": "yes"})
    assert response.status_code == 400


def test_classify_call(client):
    response = client.post("/api/calls/classify", json={
        "call_id": "call-42",
        "jobs": [
            {"id": "1", "description": "hang a TV"},
            {"id": "2", "description": "boiler servicing"},
        ],
    })

    assert response.status_code == 200
    data = response.get_json()
    assert data["call_id"] == "call-42"
    assert set(data["results"]) == {"1", "2"}
    assert data["results"]["1"]["traffic_light"] == "green"
    assert data["recommendation"]["route"] == "refer"
    assert data["recommendation"]["action_label"] == "Refer to Specialist"


def test_classify_call_records_history(client):
    client.post("/api/calls/classify", json={"jobs": [{"description": "dripping tap", "matched": True}]})

    recent = client.get("/api/calls/recent").get_json()
    assert len(recent) == 1
    assert recent[0]["route"] == "instant"
    assert recent[0]["job_count"] == 1

    stats = client.get("/api/stats").get_json()
    assert stats["total_calls"] == 1
    assert stats["instant"] == 1


def test_recent_calls_limit(client):
    for _ in range(3):
        client.post("/api/calls/classify", json={"jobs": [{"description": "bit of mould"}]})
    assert len(client.get("/api/calls/recent?limit=2").get_json()) == 2


@pytest.mark.parametrize("payload", [
    {"jobs": []},
    {"jobs": "hang a TV"},
    {"jobs": [{"id": "1"}]},
    {"jobs": [{"id": "1", "description": "tap"}, {"id": "1", "description": "shelf"}]},
])
def test_invalid_call_is_rejected(client, payload):
    response = client.post("/api/calls/classify", json=payload)
    assert response.status_code == 400
    assert "error" in response.get_json()
    assert call_history.get_recent() == []


def test_classify_call_uses_tier2_and_logs(client):
    semantic = Mock()
    semantic.classify = AsyncMock(return_value=ClassificationResult(
        traffic_light=TrafficLight.AMBER,
        recommended_route=RecommendedRoute.VISIT,
        confidence=80,
        tier=2,
        signals=["llm: spreading"],
        complexity_score=7,
        needs_specialist=False,
        reasoning="Spreading mould needs an in-person look.",
    ))
    classification_logger = Mock()
    app.config["CLASSIFIER"] = JobComplexityClassifier(ClassifierConfig(), semantic=semantic)
    app.config["CLASSIFICATION_LOGGER"] = classification_logger

    response = client.post("/api/calls/classify", json={
        "call_id": "call-7",
        "jobs": [{"id": "1", "description": "mould spreading across the bedroom"}],
    })

    data = response.get_json()
    assert data["results"]["1"]["tier"] == 2
    assert data["recommendation"]["route"] == "visit"
    assert call_history.get_stats()["tier2_jobs"] == 1
    classification_logger.log_call.assert_called_once()
    assert classification_logger.log_call.call_args.args[0] == "call-7"


@pytest.mark.parametrize("matched", ["false", "true", 1, 0])
def test_non_boolean_matched_is_rejected(client, matched):
    response = client.post("/api/calls/classify", json={
        "jobs": [{"id": "1", "description": "something is leaking under the sink", "matched": matched}],
    })
    assert response.status_code == 400
    assert "matched" in response.get_json()["error"]
    assert call_history.get_recent() == []


def test_single_job_non_boolean_matched_is_rejected(client):
    response = client.post("/api/classify", json={"description": "something is leaking", "matched": "false"})
    assert response.status_code == 400


def test_boolean_matched_false_is_not_a_catalog_match(client):
    response = client.post("/api/calls/classify", json={
        "jobs": [{"id": "1", "description": "something is leaking under the sink", "matched": False}],
    })
    assert response.get_json()["recommendation"]["route"] == "video"


def test_sku_fields_are_echoed(client):
    response = client.post("/api/calls/classify", json={
        "jobs": [
            {"id": "1", "description": "replace toilet seat", "matched": True,
             "sku_id": "SKU-104", "sku_name": "Toilet seat replacement"},
            {"id": "2", "description": "hang a mirror"},
        ],
    })
    results = response.get_json()["results"]
    assert results["1"]["sku_id"] == "SKU-104"
    assert results["1"]["sku_name"] == "Toilet seat replacement"
    assert "sku_id" not in results["2"]


def test_non_string_sku_is_rejected(client):
    response = client.post("/api/calls/classify", json={"jobs": [{"description": "tap", "sku_id": 104}]})
    assert response.status_code == 400


def test_classification_log_receives_jobs(client):
    classification_logger = Mock()
    app.config["CLASSIFICATION_LOGGER"] = classification_logger

    client.post("/api/calls/classify", json={
        "call_id": "call-9",
        "jobs": [{"id": "1", "description": "hang a TV", "sku_id": "SKU-7"}],
    })

    jobs = classification_logger.log_call.call_args.args[3]
    assert [job.sku_id for job in jobs] == ["SKU-7"]


class TestClassificationLogEndpoints:

    def test_unconfigured_log_returns_503(self, client):
        assert client.get("/api/accuracy").status_code == 503
        assert client.get("/api/logs/recent").status_code == 503

    def test_accuracy(self, client):
        classification_logger = Mock()
        classification_logger.get_accuracy_stats.return_value = {"total_evaluated": 4, "overall_accuracy": 75.0}
        app.config["CLASSIFICATION_LOGGER"] = classification_logger

        response = client.get("/api/accuracy")

        assert response.status_code == 200
        assert response.get_json()["overall_accuracy"] == 75.0

    def test_recent_logs(self, client):
        classification_logger = Mock()
        classification_logger.get_recent_logs.return_value = [{"Call_ID": "call-1"}]
        app.config["CLASSIFICATION_LOGGER"] = classification_logger

        response = client.get("/api/logs/recent?limit=5")

        assert response.get_json() == [{"Call_ID": "call-1"}]
        classification_logger.get_recent_logs.assert_called_once_with(5)
