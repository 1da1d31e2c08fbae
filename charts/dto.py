"""DTO types for chart requests, chart data, and generation states.

DTOs are plain, immutable data containers. States expose `as_payload()` so the
HTTP or tool-calling layer can forward them to the UI without knowing their
internals; payload keys use the camelCase names the UI consumes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from .resources import AggregationType, PaymentChannel, ResourceType, coerce_enum


class ChartType(StrEnum):
    """Suggested visualization for an aggregation."""

    line = "line"
    area = "area"
    bar = "bar"
    doughnut = "doughnut"
    pie = "pie"


def _first(params: Mapping[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = params.get(key)
        if value is not None and value != "":
            return str(value)
    return None


@dataclass(frozen=True, slots=True)
class ChartRequest:
    """Immutable chart request.

    Unknown enum values are kept as raw strings so `validate_chart_params` can
    report them instead of construction failing.

    Args:
        resource_type: Resource to chart.
        aggregation_type: Dimension to aggregate by.
        status: Optional status filter.
        from_date: Optional ISO start date.
        to_date: Optional ISO end date.
        currency: Optional currency filter.
        channel: Optional payment-channel filter (transactions only).
    """

    resource_type: ResourceType | str
    aggregation_type: AggregationType | str
    status: str | None = None
    from_date: str | None = None
    to_date: str | None = None
    currency: str | None = None
    channel: PaymentChannel | str | None = None

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> ChartRequest:
        """Build a request from a loosely-typed mapping.

        Accepts both the camelCase keys used by saved chart configs and tool
        calls (`resourceType`, `aggregationType`, `from`, `to`) and snake_case
        attribute names.

        Raises:
            ValueError: When the resource or aggregation type is missing.
        """

        resource_type = _first(params, "resourceType", "resource_type")
        aggregation_type = _first(params, "aggregationType", "aggregation_type")
        if resource_type is None or aggregation_type is None:
            raise ValueError("Chart params require both a resource type and an aggregation type.")
        return cls(
            resource_type=coerce_enum(ResourceType, resource_type),
            aggregation_type=coerce_enum(AggregationType, aggregation_type),
            status=_first(params, "status"),
            from_date=_first(params, "from", "from_date"),
            to_date=_first(params, "to", "to_date"),
            currency=_first(params, "currency"),
            channel=coerce_enum(PaymentChannel, _first(params, "channel")),
        )

    def as_params(self) -> dict[str, str]:
        """Encode the request as a camelCase mapping, omitting unset filters."""

        payload = {
            "resourceType": str(self.resource_type),
            "aggregationType": str(self.aggregation_type),
            "status": self.status,
            "from": self.from_date,
            "to": self.to_date,
            "currency": self.currency,
            "channel": None if self.channel is None else str(self.channel),
        }
        return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True, slots=True)
class ChartDataPoint:
    """One chart bucket.

    Attributes:
        label: Display label for the bucket.
        value: Sum of amounts in the bucket, in minor units.
        count: Number of records in the bucket.
    """

    label: str
    value: int
    count: int

    @property
    def average(self) -> float:
        """Mean amount per record in the bucket."""

        return self.value / self.count if self.count else 0.0

    def as_payload(self) -> dict[str, Any]:
        return {"label": self.label, "value": self.value, "count": self.count, "average": self.average}


@dataclass(frozen=True, slots=True)
class ChartSeries:
    """A named, ordered sequence of points (one per currency)."""

    name: str
    points: tuple[ChartDataPoint, ...]

    def as_payload(self) -> dict[str, Any]:
        return {"name": self.name, "points": [point.as_payload() for point in self.points]}


@dataclass(frozen=True, slots=True)
class AggregationResult:
    """Aggregated chart data; exactly one of the two fields is populated.

    Attributes:
        chart_data: Flat points, used when all records share one currency.
        chart_series: One series per currency, used for mixed-currency records.
    """

    chart_data: tuple[ChartDataPoint, ...] | None = None
    chart_series: tuple[ChartSeries, ...] | None = None

    def __post_init__(self) -> None:
        if (self.chart_data is None) == (self.chart_series is None):
            raise ValueError("AggregationResult requires exactly one of chart_data or chart_series.")

    @property
    def point_count(self) -> int:
        """Total number of points across the populated shape."""

        if self.chart_series is not None:
            return sum(len(series.points) for series in self.chart_series)
        return len(self.chart_data or ())


@dataclass(frozen=True, slots=True)
class DisplayDateRange:
    """Date range formatted for display (`Dec 1, 2024` or `N/A`)."""

    from_label: str
    to_label: str


@dataclass(frozen=True, slots=True)
class CurrencySummary:
    """Summary statistics restricted to one currency."""

    currency: str
    total_count: int
    total_volume: int
    overall_average: float


@dataclass(frozen=True, slots=True)
class ChartSummary:
    """Summary statistics over every fetched record.

    Attributes:
        total_count: Number of records.
        total_volume: Sum of amounts in minor units.
        overall_average: `total_volume / total_count`, 0 when there are no records.
        per_currency: Per-currency breakdown, sorted by currency code.
        date_range: Display range when the request supplied either bound.
    """

    total_count: int
    total_volume: int
    overall_average: float
    per_currency: tuple[CurrencySummary, ...] = ()
    date_range: DisplayDateRange | None = None

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "totalCount": self.total_count,
            "totalVolume": self.total_volume,
            "overallAverage": self.overall_average,
            "perCurrency": [
                {
                    "currency": item.currency,
                    "totalCount": item.total_count,
                    "totalVolume": item.total_volume,
                    "overallAverage": item.overall_average,
                }
                for item in self.per_currency
            ],
        }
        if self.date_range is not None:
            payload["dateRange"] = {"from": self.date_range.from_label, "to": self.date_range.to_label}
        return payload


@dataclass(frozen=True, slots=True)
class ChartLoadingState:
    """Intermediate progress state."""

    label: str
    chart_type: ChartType
    message: str

    is_terminal = False

    def as_payload(self) -> dict[str, Any]:
        return {"loading": True, "label": self.label, "chartType": str(self.chart_type), "message": self.message}


@dataclass(frozen=True, slots=True)
class ChartSuccessState:
    """Terminal state carrying the finished chart.

    Attributes:
        truncated: True when the record cap was reached and more records may
            exist upstream.
    """

    label: str
    chart_type: ChartType
    summary: ChartSummary
    message: str
    chart_data: tuple[ChartDataPoint, ...] = ()
    chart_series: tuple[ChartSeries, ...] = ()
    truncated: bool = False

    is_terminal = True

    def as_payload(self) -> dict[str, Any]:
        return {
            "success": True,
            "label": self.label,
            "chartType": str(self.chart_type),
            "chartData": [point.as_payload() for point in self.chart_data],
            "chartSeries": [series.as_payload() for series in self.chart_series],
            "summary": self.summary.as_payload(),
            "message": self.message,
            "truncated": self.truncated,
        }


@dataclass(frozen=True, slots=True)
class ChartErrorState:
    """Terminal state describing why no chart was produced."""

    error: str
    code: str | None = None

    is_terminal = True

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.code is not None:
            payload["code"] = self.code
        return payload


@dataclass(frozen=True, slots=True)
class ChartCancelledState:
    """Terminal state for a generation the caller cancelled."""

    message: str = "Chart generation was cancelled"

    is_terminal = True

    def as_payload(self) -> dict[str, Any]:
        return {"cancelled": True, "message": self.message}


ChartTerminalState = ChartSuccessState | ChartErrorState | ChartCancelledState
ChartGenerationState = ChartLoadingState | ChartTerminalState


@dataclass(frozen=True, slots=True)
class FetchProgress:
    """Running totals reported by the pager after a full page."""

    page: int
    loaded: int
