"""Tests for the Airtable classification log."""
import pytest
from unittest.mock import Mock, patch
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from job_classifier.aggregator import get_overall_route_recommendation
from job_classifier.classification_log import ClassificationLogger
from job_classifier.config import AirtableConfig
from job_classifier.lexical_matcher import tier1_keyword_match
from job_classifier.models import JobInput


@pytest.fixture
def airtable_config():
    return AirtableConfig(api_key="pat123", base_id="app123", classification_log_table_id="tbl123")


@pytest.fixture
def call_results():
    return {
        "1": tier1_keyword_match("hang a TV", False),
        "2": tier1_keyword_match("boiler servicing", False),
    }


def test_log_call_writes_record(airtable_config, call_results):
    classification_logger = ClassificationLogger(airtable_config)
    table = Mock()
    table.create.return_value = {"id": "rec123"}
    classification_logger._table = table
    recommendation = get_overall_route_recommendation(call_results)

    record_id = classification_logger.log_call("call-1", call_results, recommendation)

    assert record_id == "rec123"
    fields = table.create.call_args.args[0]
    assert fields["Call_ID"] == "call-1"
    assert fields["Job_Count"] == 2
    assert fields["Tier2_Jobs"] == 0
    assert fields["Recommended_Route"] == "refer"
    assert "=== JOB 2 (TIER-1) ===" in fields["Classification_Details"]
    assert 'red: "boiler"' in fields["Classification_Details"]


def test_table_is_built_from_config(airtable_config):
    with patch("job_classifier.classification_log.Api") as api_cls:
        classification_logger = ClassificationLogger(airtable_config)
        table = classification_logger.table

    api_cls.assert_called_once_with("pat123")
    api_cls.return_value.table.assert_called_once_with("app123", "tbl123")
    assert table is api_cls.return_value.table.return_value


def test_unconfigured_table_skips_logging(call_results):
    classification_logger = ClassificationLogger(AirtableConfig())
    recommendation = get_overall_route_recommendation(call_results)
    assert classification_logger.log_call("call-1", call_results, recommendation) is None
    assert classification_logger.get_recent_logs() == []


def test_airtable_failure_does_not_raise(airtable_config, call_results):
    classification_logger = ClassificationLogger(airtable_config)
    classification_logger._table = Mock()
    classification_logger._table.create.side_effect = RuntimeError("rate limited")
    recommendation = get_overall_route_recommendation(call_results)

    assert classification_logger.log_call("call-1", call_results, recommendation) is None


def test_accuracy_stats(airtable_config):
    classification_logger = ClassificationLogger(airtable_config)
    classification_logger._table = Mock()
    classification_logger._table.all.return_value = [
        {"fields": {"Recommended_Route": "refer", "Actual_Route": "refer"}},
        {"fields": {"Recommended_Route": "video", "Actual_Route": "instant"}},
        {"fields": {"Recommended_Route": "video", "Actual_Route": "video"}},
        {"fields": {"Recommended_Route": "instant", "Actual_Route": "instant"}},
    ]

    stats = classification_logger.get_accuracy_stats()

    assert stats["total_evaluated"] == 4
    assert stats["overall_accuracy"] == 75.0
    assert stats["route_accuracy"] == {"refer": 100.0, "video": 50.0, "instant": 100.0}


def test_accuracy_stats_without_feedback(airtable_config):
    classification_logger = ClassificationLogger(airtable_config)
    classification_logger._table = Mock()
    classification_logger._table.all.return_value = []
    assert classification_logger.get_accuracy_stats()["total_evaluated"] == 0


def test_details_include_sku(airtable_config, call_results):
    classification_logger = ClassificationLogger(airtable_config)
    classification_logger._table = Mock()
    classification_logger._table.create.return_value = {"id": "rec9"}
    recommendation = get_overall_route_recommendation(call_results)
    jobs = [
        JobInput(id="1", description="hang a TV", matched=True, sku_id="SKU-7", sku_name="TV mounting"),
        JobInput(id="2", description="boiler servicing"),
    ]

    classification_logger.log_call("call-2", call_results, recommendation, jobs)

    details = classification_logger._table.create.call_args.args[0]["Classification_Details"]
    assert "SKU: TV mounting (SKU-7)" in details
    assert details.count("SKU:") == 1


def test_recent_logs_returns_fields(airtable_config):
    classification_logger = ClassificationLogger(airtable_config)
    classification_logger._table = Mock()
    classification_logger._table.all.return_value = [{"id": "rec1", "fields": {"Call_ID": "call-1"}}]

    assert classification_logger.get_recent_logs(5) == [{"Call_ID": "call-1"}]
    classification_logger._table.all.assert_called_once_with(sort=["-Timestamp"], max_records=5)
