"""Aggregation of chartable records into chart data and summaries.

Temporal aggregations bucket records by their UTC timestamp and return buckets
in chronological order. Categorical aggregations bucket by a dimension field
and keep buckets in the order their key was first seen. Buckets are sparse:
only buckets that received at least one record are emitted.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from .date_range import format_display_date, parse_iso_datetime
from .dto import (
    AggregationResult,
    ChartDataPoint,
    ChartSeries,
    ChartSummary,
    ChartType,
    CurrencySummary,
    DisplayDateRange,
)
from .records import ChartableRecord
from .resources import TEMPORAL_AGGREGATIONS, AggregationType, ResourceType, resource_display_name

UNKNOWN_BUCKET = "unknown"

_TEMPORAL_LABEL_PREFIX: dict[AggregationType, str] = {
    AggregationType.by_hour: "Hourly",
    AggregationType.by_day: "Daily",
    AggregationType.by_week: "Weekly",
    AggregationType.by_month: "Monthly",
}

_CATEGORICAL_FIELDS: dict[AggregationType, Callable[[ChartableRecord], str | None]] = {
    AggregationType.by_status: lambda record: record.status,
    AggregationType.by_type: lambda record: record.type,
    AggregationType.by_category: lambda record: record.category,
    AggregationType.by_resolution: lambda record: record.resolution,
    AggregationType.by_channel: lambda record: record.channel,
}


@dataclass(slots=True)
class _Bucket:
    label: str
    sort_key: Hashable
    total: int = 0
    count: int = 0


def _record_timestamp(record: ChartableRecord) -> datetime:
    parsed = parse_iso_datetime(record.created_at)
    if parsed is None:
        raise ValueError(f"Record has an invalid timestamp: {record.created_at!r}")
    return parsed


def _temporal_key(moment: datetime, aggregation_type: AggregationType) -> tuple[tuple[int, ...], str]:
    if aggregation_type == AggregationType.by_hour:
        return (moment.year, moment.month, moment.day, moment.hour), f"{moment:%Y-%m-%d %H}:00"
    if aggregation_type == AggregationType.by_day:
        return (moment.year, moment.month, moment.day), f"{moment:%A}, {moment:%b} {moment.day}"
    if aggregation_type == AggregationType.by_week:
        iso = moment.isocalendar()
        return (iso.year, iso.week), f"{iso.year}-W{iso.week:02d}"
    if aggregation_type == AggregationType.by_month:
        return (moment.year, moment.month), f"{moment.year}-{moment.month:02d}"
    raise ValueError(f"Not a temporal aggregation: {aggregation_type!r}")


def _bucket_points(
    records: Iterable[ChartableRecord],
    aggregation_type: AggregationType,
) -> tuple[ChartDataPoint, ...]:
    buckets: dict[Hashable, _Bucket] = {}
    temporal = aggregation_type in TEMPORAL_AGGREGATIONS
    dimension = None if temporal else _CATEGORICAL_FIELDS.get(aggregation_type)
    if not temporal and dimension is None:
        raise ValueError(f"Unsupported aggregation type: {aggregation_type!r}")

    for record in records:
        if dimension is None:
            sort_key, label = _temporal_key(_record_timestamp(record), aggregation_type)
            key: Hashable = sort_key
        else:
            label = dimension(record) or UNKNOWN_BUCKET
            key = label
            sort_key = len(buckets)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = _Bucket(label=label, sort_key=sort_key)
        bucket.total += record.amount
        bucket.count += 1

    ordered: Sequence[_Bucket] = list(buckets.values())
    if temporal:
        ordered = sorted(ordered, key=lambda bucket: bucket.sort_key)
    return tuple(ChartDataPoint(label=bucket.label, value=bucket.total, count=bucket.count) for bucket in ordered)


def aggregate_records(
    records: Sequence[ChartableRecord],
    aggregation_type: AggregationType | str,
) -> AggregationResult:
    """Aggregate records into chart points.

    Args:
        records: Normalized records to aggregate.
        aggregation_type: Temporal or categorical dimension.

    Returns:
        AggregationResult with `chart_data` when all records share one currency
        (or there are none), otherwise `chart_series` with one series per
        currency sorted by currency code.

    Raises:
        ValueError: For an unsupported aggregation type or an unparseable
            record timestamp.
    """

    aggregation = AggregationType(aggregation_type)
    by_currency: dict[str, list[ChartableRecord]] = {}
    for record in records:
        by_currency.setdefault(record.currency, []).append(record)

    if len(by_currency) <= 1:
        return AggregationResult(chart_data=_bucket_points(records, aggregation))

    return AggregationResult(
        chart_series=tuple(
            ChartSeries(name=currency, points=_bucket_points(by_currency[currency], aggregation))
            for currency in sorted(by_currency)
        )
    )


def _average(total: int, count: int) -> float:
    return total / count if count else 0.0


def calculate_summary(
    records: Sequence[ChartableRecord],
    *,
    from_date: str | None = None,
    to_date: str | None = None,
) -> ChartSummary:
    """Compute summary statistics over all records.

    `date_range` is set only when the request supplied at least one bound.
    """

    total_volume = sum(record.amount for record in records)
    totals: dict[str, list[int]] = {}
    for record in records:
        entry = totals.setdefault(record.currency, [0, 0])
        entry[0] += record.amount
        entry[1] += 1

    per_currency = tuple(
        CurrencySummary(
            currency=currency,
            total_count=count,
            total_volume=volume,
            overall_average=_average(volume, count),
        )
        for currency, (volume, count) in sorted(totals.items())
    )

    date_range = None
    if from_date or to_date:
        date_range = DisplayDateRange(
            from_label=format_display_date(from_date),
            to_label=format_display_date(to_date),
        )

    return ChartSummary(
        total_count=len(records),
        total_volume=total_volume,
        overall_average=_average(total_volume, len(records)),
        per_currency=per_currency,
        date_range=date_range,
    )


def get_chart_type(aggregation_type: AggregationType | str) -> ChartType:
    """Return the suggested chart type for an aggregation."""

    if aggregation_type == AggregationType.by_hour:
        return ChartType.bar
    if aggregation_type in TEMPORAL_AGGREGATIONS:
        return ChartType.area
    return ChartType.doughnut


def generate_chart_label(aggregation_type: AggregationType | str, resource_type: ResourceType | str) -> str:
    """Return a display label such as `Daily Refund Metrics`.

    Categorical aggregations read `<Resource> Metrics by <Dimension>`.
    """

    name = resource_display_name(ResourceType(resource_type))
    aggregation = AggregationType(aggregation_type)
    prefix = _TEMPORAL_LABEL_PREFIX.get(aggregation)
    if prefix is not None:
        return f"{prefix} {name} Metrics"
    dimension = str(aggregation).removeprefix("by-").title()
    return f"{name} Metrics by {dimension}"
