"""Tests for the streaming chart generation state machine."""

from __future__ import annotations

import pytest

from charts.dto import (
    ChartCancelledState,
    ChartErrorState,
    ChartLoadingState,
    ChartRequest,
    ChartSuccessState,
    ChartType,
)
from charts.generator import (
    FALLBACK_ERROR_MESSAGE,
    MISSING_TOKEN_MESSAGE,
    ChartGenerationStream,
    generate_chart_data,
)
from charts.resources import AggregationType, ResourceType
from charts.validation import ErrorCode

pytestmark = pytest.mark.unit

BY_DAY = ChartRequest(resource_type=ResourceType.transaction, aggregation_type=AggregationType.by_day)


def test_missing_token_yields_single_error_without_io(records_service_factory) -> None:
    """No token means one error state and zero upstream calls."""

    service = records_service_factory()

    states = list(ChartGenerationStream(BY_DAY, service, None))

    assert states == [ChartErrorState(error=MISSING_TOKEN_MESSAGE)]
    assert service.calls == []


def test_invalid_request_yields_single_error(records_service_factory) -> None:
    """Validation failures end the stream before any fetch."""

    service = records_service_factory()
    request = ChartRequest(resource_type=ResourceType.payout, aggregation_type=AggregationType.by_channel)

    states = list(ChartGenerationStream(request, service, "sk_test"))

    assert len(states) == 1
    assert isinstance(states[0], ChartErrorState)
    assert states[0].code == ErrorCode.INVALID_AGGREGATION_TYPE
    assert service.calls == []


def test_empty_result_is_success_with_zero_summary(records_service_factory) -> None:
    """No records produce the empty success state without aggregation."""

    states = list(ChartGenerationStream(BY_DAY, records_service_factory([[]]), "sk_test"))

    assert [type(state) for state in states] == [ChartLoadingState, ChartSuccessState]
    assert states[0].message == "Fetching transactions..."
    terminal = states[-1]
    assert terminal.message == "No transactions found for the specified criteria"
    assert terminal.chart_data == ()
    assert terminal.summary.total_count == 0
    assert terminal.summary.overall_average == 0.0
    assert terminal.summary.date_range is None


def test_empty_result_keeps_requested_date_range(records_service_factory) -> None:
    """The empty success summary still reports the requested date range."""

    request = ChartRequest(
        resource_type=ResourceType.transaction,
        aggregation_type=AggregationType.by_day,
        from_date="2024-12-01",
        to_date="2024-12-10",
    )

    terminal = generate_chart_data(request, records_service_factory([[]]), "sk_test")

    assert isinstance(terminal, ChartSuccessState)
    assert terminal.summary.total_count == 0
    assert terminal.summary.date_range is not None
    assert (terminal.summary.date_range.from_label, terminal.summary.date_range.to_label) == (
        "Dec 1, 2024",
        "Dec 10, 2024",
    )
    assert terminal.as_payload()["summary"]["dateRange"] == {"from": "Dec 1, 2024", "to": "Dec 10, 2024"}


def test_progress_states_follow_full_pages(records_service_factory, page_factory) -> None:
    """Emit one progress state per full page, then processing and success."""

    pages = [page_factory(100), page_factory(100), page_factory(100), page_factory(40)]
    states = list(ChartGenerationStream(BY_DAY, records_service_factory(pages), "sk_test"))

    assert [state.message for state in states] == [
        "Fetching transactions...",
        "Fetching transactions... (100 loaded)",
        "Fetching transactions... (200 loaded)",
        "Fetching transactions... (300 loaded)",
        "Processing 340 transactions...",
        "Generated chart data with 1 data points from 340 transactions",
    ]
    terminal = states[-1]
    assert isinstance(terminal, ChartSuccessState)
    assert terminal.label == "Daily Transaction Metrics"
    assert terminal.chart_type == ChartType.area
    assert terminal.chart_data[0].count == 340
    assert terminal.summary.total_volume == 340 * 1000
    assert all(not state.is_terminal for state in states[:-1])


def test_page_cap_marks_success_truncated(records_service_factory, page_factory) -> None:
    """Hitting the page cap flags the success state as truncated."""

    service = records_service_factory([page_factory(100) for _ in range(12)])

    terminal = generate_chart_data(BY_DAY, service, "sk_test")

    assert isinstance(terminal, ChartSuccessState)
    assert terminal.truncated is True
    assert terminal.summary.total_count == 1000
    assert "limited to the first 1000 transactions" in terminal.message
    assert len(service.calls) == 10


def test_multi_currency_success_uses_series(records_service_factory, transaction_factory) -> None:
    """Mixed currencies produce chart_series and leave chart_data empty."""

    page = [transaction_factory(currency="USD"), transaction_factory(currency="NGN")]

    terminal = generate_chart_data(BY_DAY, records_service_factory([page]), "sk_test")

    assert isinstance(terminal, ChartSuccessState)
    assert terminal.chart_data == ()
    assert [series.name for series in terminal.chart_series] == ["NGN", "USD"]
    assert [item.currency for item in terminal.summary.per_currency] == ["NGN", "USD"]


def test_upstream_failure_becomes_error_state(records_service_factory, page_factory) -> None:
    """Upstream exceptions end the stream with their message."""

    service = records_service_factory([page_factory(100)], error=RuntimeError("Upstream unavailable"), fail_on_call=2)
    states = list(ChartGenerationStream(BY_DAY, service, "sk_test"))

    assert isinstance(states[-1], ChartErrorState)
    assert states[-1].error == "Upstream unavailable"
    assert sum(state.is_terminal for state in states) == 1


def test_blank_exception_message_uses_fallback(records_service_factory) -> None:
    """Exceptions without a message fall back to a generic error."""

    terminal = generate_chart_data(BY_DAY, records_service_factory(error=RuntimeError()), "sk_test")

    assert terminal == ChartErrorState(error=FALLBACK_ERROR_MESSAGE)


def test_cancel_between_pages(records_service_factory, page_factory) -> None:
    """Cancellation takes effect before the next page fetch."""

    service = records_service_factory([page_factory(100), page_factory(100), page_factory(10)])
    stream = ChartGenerationStream(BY_DAY, service, "sk_test")

    assert next(stream).message == "Fetching transactions..."
    assert next(stream).message == "Fetching transactions... (100 loaded)"
    stream.cancel()

    assert isinstance(next(stream), ChartCancelledState)
    assert len(service.calls) == 1
    with pytest.raises(StopIteration):
        next(stream)


def test_run_pushes_states_and_cannot_restart(records_service_factory) -> None:
    """run() forwards every state to the callback exactly once."""

    stream = ChartGenerationStream(BY_DAY, records_service_factory([[]]), "sk_test")
    seen = []

    terminal = stream.run(seen.append)

    assert seen[-1] is terminal
    assert len(seen) == 2
    with pytest.raises(RuntimeError):
        stream.run()


def test_generate_chart_data_accepts_params_mapping(records_service_factory) -> None:
    """Loosely-typed params are decoded before generation."""

    service = records_service_factory([[]])

    terminal = generate_chart_data({"resourceType": "refund", "aggregationType": "by-type"}, service, "sk_test")

    assert isinstance(terminal, ChartSuccessState)
    assert terminal.label == "Refund Metrics by Type"
    assert terminal.chart_type == ChartType.doughnut
    assert service.calls[0][0] == "/refund"


def test_success_payload_uses_ui_keys(records_service_factory, transaction_factory) -> None:
    """Payloads carry the camelCase keys and success discriminator."""

    terminal = generate_chart_data(BY_DAY, records_service_factory([[transaction_factory()]]), "sk_test")
    payload = terminal.as_payload()

    assert payload["success"] is True
    assert payload["chartType"] == "area"
    assert payload["chartData"] == [{"label": "Tuesday, Dec 10", "value": 1000, "count": 1, "average": 1000.0}]
    assert payload["summary"]["totalCount"] == 1


def test_pager_is_required_once_fetching(records_service_factory) -> None:
    """Fetch phases refuse to run before a pager exists or after the terminal state."""

    stream = ChartGenerationStream(BY_DAY, records_service_factory([[]]), "sk_test")
    with pytest.raises(RuntimeError, match="no active pager"):
        stream._require_pager()

    stream.run()
    with pytest.raises(RuntimeError, match="no active pager"):
        stream._require_pager()
