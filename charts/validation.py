"""Validation gate for chart requests.

Checks run in a fixed order and stop at the first failure, so callers always
see the most fundamental problem first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from .date_range import validate_date_range
from .dto import ChartRequest
from .resources import STATUS_VALUES, VALID_AGGREGATIONS, PaymentChannel, ResourceType, is_valid_aggregation


class ErrorCode(StrEnum):
    """Machine-readable validation failure codes."""

    INVALID_RESOURCE_TYPE = "INVALID_RESOURCE_TYPE"
    INVALID_AGGREGATION_TYPE = "INVALID_AGGREGATION_TYPE"
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_CHANNEL = "INVALID_CHANNEL"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"


@dataclass(frozen=True, slots=True)
class ChartValidationResult:
    """Validation result for a ChartRequest.

    Args:
        is_valid: True when the request may be executed.
        error: Human-readable reason for the first failed check.
        code: ErrorCode of the first failed check.
    """

    is_valid: bool
    error: str | None = None
    code: ErrorCode | None = None


def _invalid(error: str, code: ErrorCode) -> ChartValidationResult:
    return ChartValidationResult(is_valid=False, error=error, code=code)


def _options(values) -> str:
    return ", ".join(str(value) for value in values)


def validate_chart_params(
    request: ChartRequest,
    *,
    now: datetime | None = None,
) -> ChartValidationResult:
    """Validate a chart request without performing any I/O.

    Args:
        request: ChartRequest to validate.
        now: Reference time for single-bound date ranges (defaults to now).

    Returns:
        ChartValidationResult describing the first failing check, if any.
    """

    if request.resource_type not in VALID_AGGREGATIONS:
        return _invalid(
            f"Invalid resource type '{request.resource_type}'. "
            f"Valid options are: {_options(ResourceType)}",
            ErrorCode.INVALID_RESOURCE_TYPE,
        )
    resource_type = ResourceType(request.resource_type)

    allowed = VALID_AGGREGATIONS[resource_type]
    if not is_valid_aggregation(resource_type, str(request.aggregation_type)):
        return _invalid(
            f"Invalid aggregation type '{request.aggregation_type}' for resource type "
            f"'{resource_type}'. Valid options are: {_options(allowed)}",
            ErrorCode.INVALID_AGGREGATION_TYPE,
        )

    if request.status:
        statuses = STATUS_VALUES[resource_type]
        if request.status not in statuses:
            return _invalid(
                f"Invalid status '{request.status}' for resource type '{resource_type}'. "
                f"Valid options are: {_options(statuses)}",
                ErrorCode.INVALID_STATUS,
            )

    if request.channel:
        if resource_type != ResourceType.transaction:
            return _invalid(
                "Channel filter is only supported for transactions. "
                f"Received resource type '{resource_type}'.",
                ErrorCode.INVALID_AGGREGATION_TYPE,
            )
        if request.channel not in tuple(PaymentChannel):
            return _invalid(
                f"Invalid channel '{request.channel}'. Valid options are: {_options(PaymentChannel)}",
                ErrorCode.INVALID_CHANNEL,
            )

    date_check = validate_date_range(request.from_date, request.to_date, now=now)
    if not date_check.is_valid:
        return _invalid(date_check.error or "Invalid date range", ErrorCode.INVALID_DATE_RANGE)

    return ChartValidationResult(is_valid=True)
