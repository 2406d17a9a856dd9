"""Tests unitaires pour l'agrégation du journal d'utilisation."""

from datetime import datetime, timedelta, timezone

import pytest

from model_gateway.domain.analytics import (
    ModelUsageSummary,
    group_usage,
    period_start,
    summarize_usage,
)
from model_gateway.domain.models import UsageLogEntry


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_period_start():
    assert period_start("day", NOW) == NOW - timedelta(days=1)
    assert period_start("month", NOW) == NOW - timedelta(days=30)
    assert period_start("all", NOW) is None


def test_summarize_usage_groups_by_model(models):
    entries = [
        UsageLogEntry(model_id=2, success=True, tokens_input=10, tokens_output=20,
                      response_time=0.5, confidence_score=0.9),
        UsageLogEntry(model_id=1, success=True, tokens_input=5, tokens_output=5,
                      response_time=1.0, confidence_score=0.8, fallback_used=True),
        UsageLogEntry(model_id=1, success=False, response_time=2.0, error_message="boom"),
        UsageLogEntry(model_id=1, success=True, tokens_input=1, tokens_output=2,
                      response_time=0.25, confidence_score=0.6),
    ]

    summaries = summarize_usage(entries, models)

    assert [s.model_id for s in summaries] == [1, 2]
    first = summaries[0]
    assert first.model_name == "model-1"
    assert first.provider == "openai"
    assert first.total_requests == 3
    assert first.successful_requests == 2
    assert first.fallback_requests == 1
    assert first.total_input_tokens == 6
    assert first.total_output_tokens == 7
    assert first.avg_response_time == 1.083
    assert first.avg_confidence_score == 0.7
    assert first.success_rate == 66.67
    assert first.fallback_rate == 33.33


def test_unknown_model_is_reported_as_unknown():
    summaries = summarize_usage([UsageLogEntry(model_id=9, success=True)])
    assert summaries[0].model_name == "Unknown"
    assert summaries[0].avg_confidence_score is None


def test_rates_without_requests():
    summary = ModelUsageSummary(model_id=1, model_name="m", provider="openai")
    assert summary.success_rate == 0.0
    assert summary.fallback_rate == 0.0


def usage(hours_ago: float, **kwargs) -> UsageLogEntry:
    kwargs.setdefault("model_id", 1)
    kwargs.setdefault("success", True)
    return UsageLogEntry(created_at=NOW - timedelta(hours=hours_ago), **kwargs)


@pytest.fixture
def entries() -> list[UsageLogEntry]:
    return [
        usage(0, query_type="support", use_case="billing", tokens_input=10, response_time=1.0),
        usage(1, query_type="sales", success=False, fallback_used=True, response_time=3.0),
        usage(25, query_type="support", use_case="billing", confidence_score=0.5),
        usage(26, query_type="support", confidence_score=0.9),
    ]


def test_group_usage_by_day_is_chronological(entries):
    buckets = group_usage(entries, "day")

    assert [b.key for b in buckets] == ["2026-02-28", "2026-03-01"]
    yesterday, today = buckets
    assert yesterday.total_requests == 2
    assert yesterday.avg_confidence_score == 0.7
    assert today.total_requests == 2
    assert today.successful_requests == 1
    assert today.fallback_requests == 1
    assert today.fallback_rate == 50.0
    assert today.total_input_tokens == 10
    assert today.avg_response_time == 2.0


def test_group_usage_by_hour(entries):
    buckets = group_usage(entries, "hour")

    assert [(b.key, b.total_requests) for b in buckets] == [(10, 1), (11, 2), (12, 1)]


def test_group_usage_by_query_type_most_used_first(entries):
    buckets = group_usage(entries, "query_type")

    assert [(b.key, b.total_requests) for b in buckets] == [("support", 3), ("sales", 1)]
    assert buckets[0].success_rate == 100.0


def test_group_usage_by_use_case_keeps_missing_values_last(entries):
    buckets = group_usage(entries, "use_case")

    assert [(b.key, b.total_requests) for b in buckets] == [("billing", 2), (None, 2)]


def test_group_usage_unknown_key():
    with pytest.raises(KeyError):
        group_usage([], "tenant")
