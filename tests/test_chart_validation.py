"""Tests for the chart request validation gate."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from charts.dto import ChartRequest
from charts.resources import AggregationType, ResourceType
from charts.validation import ErrorCode, validate_chart_params

pytestmark = pytest.mark.unit

NOW = datetime(2024, 6, 15, tzinfo=UTC)

ALLOWED = {
    "transaction": {"by-day", "by-hour", "by-week", "by-month", "by-status", "by-channel"},
    "refund": {"by-day", "by-hour", "by-week", "by-month", "by-status", "by-type"},
    "payout": {"by-day", "by-hour", "by-week", "by-month", "by-status"},
    "dispute": {"by-day", "by-hour", "by-week", "by-month", "by-status", "by-category", "by-resolution"},
}


@pytest.mark.parametrize("resource_type", list(ALLOWED))
@pytest.mark.parametrize("aggregation_type", [str(item) for item in AggregationType])
def test_aggregation_allow_list(resource_type: str, aggregation_type: str) -> None:
    """Accept exactly the aggregation types allowed for each resource."""

    request = ChartRequest.from_params({"resourceType": resource_type, "aggregationType": aggregation_type})
    result = validate_chart_params(request, now=NOW)

    expected = aggregation_type in ALLOWED[resource_type]
    assert result.is_valid is expected
    if not expected:
        assert result.code == ErrorCode.INVALID_AGGREGATION_TYPE
        assert f"Invalid aggregation type '{aggregation_type}'" in (result.error or "")


def test_unknown_resource_type() -> None:
    """Report unknown resource types before anything else."""

    result = validate_chart_params(ChartRequest(resource_type="invoice", aggregation_type="nonsense"))
    assert result.is_valid is False
    assert result.code == ErrorCode.INVALID_RESOURCE_TYPE


def test_status_must_belong_to_resource_vocabulary() -> None:
    """Reject statuses from another resource's vocabulary."""

    request = ChartRequest(
        resource_type=ResourceType.payout,
        aggregation_type=AggregationType.by_day,
        status="abandoned",
    )
    result = validate_chart_params(request, now=NOW)
    assert result.code == ErrorCode.INVALID_STATUS
    assert "Invalid status 'abandoned' for resource type 'payout'" in (result.error or "")


def test_channel_is_rejected_for_non_transactions() -> None:
    """Channel filters only apply to transactions."""

    request = ChartRequest(
        resource_type=ResourceType.refund,
        aggregation_type=AggregationType.by_day,
        channel="card",
    )
    result = validate_chart_params(request, now=NOW)
    assert result.is_valid is False
    assert (result.error or "").startswith("Channel filter is only supported for transactions")


def test_unknown_channel_is_rejected() -> None:
    """Transactions accept only known payment channels."""

    request = ChartRequest.from_params(
        {"resourceType": "transaction", "aggregationType": "by-day", "channel": "carrier_pigeon"}
    )
    result = validate_chart_params(request, now=NOW)
    assert result.code == ErrorCode.INVALID_CHANNEL
    assert "Invalid channel 'carrier_pigeon'" in (result.error or "")


def test_date_range_error_is_propagated_verbatim() -> None:
    """Surface the date validator's message unchanged."""

    request = ChartRequest(
        resource_type=ResourceType.transaction,
        aggregation_type=AggregationType.by_day,
        from_date="2024-02-01",
        to_date="2024-01-01",
    )
    result = validate_chart_params(request, now=NOW)
    assert result.code == ErrorCode.INVALID_DATE_RANGE
    assert result.error == "The 'from' date cannot be after the 'to' date"


def test_checks_short_circuit_in_order() -> None:
    """A bad aggregation is reported even when the status is also bad."""

    request = ChartRequest(
        resource_type=ResourceType.transaction,
        aggregation_type=AggregationType.by_category,
        status="bogus",
        from_date="garbage",
    )
    result = validate_chart_params(request, now=NOW)
    assert result.code == ErrorCode.INVALID_AGGREGATION_TYPE


def test_fully_specified_transaction_request_is_valid() -> None:
    """A request using every filter passes validation."""

    request = ChartRequest.from_params(
        {
            "resource_type": "transaction",
            "aggregation_type": "by-channel",
            "status": "success",
            "from": "2024-06-01",
            "to": "2024-06-10",
            "currency": "NGN",
            "channel": "bank_transfer",
        }
    )
    assert validate_chart_params(request, now=NOW).is_valid is True
    assert request.as_params()["channel"] == "bank_transfer"
