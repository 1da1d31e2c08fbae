"""Static resource tables for chart generation.

These tables define which financial record kinds can be charted, how each kind
may be aggregated, which status values each kind accepts, and which upstream
endpoint serves it. They are read-only and shared by validation, fetching, and
labelling.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final, TypeVar

E = TypeVar("E", bound=StrEnum)


class ResourceType(StrEnum):
    """Financial record kinds supported by chart generation."""

    transaction = "transaction"
    refund = "refund"
    payout = "payout"
    dispute = "dispute"


class AggregationType(StrEnum):
    """Dimensions a chart can be aggregated by."""

    by_day = "by-day"
    by_hour = "by-hour"
    by_week = "by-week"
    by_month = "by-month"
    by_status = "by-status"
    by_type = "by-type"
    by_category = "by-category"
    by_resolution = "by-resolution"
    by_channel = "by-channel"


TEMPORAL_AGGREGATIONS: Final[frozenset[AggregationType]] = frozenset(
    {
        AggregationType.by_hour,
        AggregationType.by_day,
        AggregationType.by_week,
        AggregationType.by_month,
    }
)


class TransactionStatus(StrEnum):
    """Transaction status vocabulary."""

    success = "success"
    failed = "failed"
    abandoned = "abandoned"


class RefundStatus(StrEnum):
    """Refund status vocabulary."""

    pending = "pending"
    failed = "failed"
    processed = "processed"
    processing = "processing"
    retriable = "retriable"


class PayoutStatus(StrEnum):
    """Payout (settlement) status vocabulary."""

    success = "success"
    computing = "computing"
    pending = "pending"
    failed = "failed"
    manualprocessing = "manualprocessing"
    open = "open"
    processing = "processing"


class DisputeStatus(StrEnum):
    """Dispute status vocabulary."""

    resolved = "resolved"
    awaiting_merchant_feedback = "awaiting-merchant-feedback"


class PaymentChannel(StrEnum):
    """Payment channels a transaction can be made through."""

    card = "card"
    ussd = "ussd"
    bank = "bank"
    qr = "qr"
    eft = "eft"
    bank_transfer = "bank_transfer"
    mobile_money = "mobile_money"
    direct_debit = "direct_debit"
    debit_order = "debit_order"
    payattitude = "payattitude"
    apple_pay = "apple_pay"
    paypal = "paypal"
    preauth = "preauth"
    capitec_pay = "capitec_pay"


_TEMPORAL_AND_STATUS: Final[tuple[AggregationType, ...]] = (
    AggregationType.by_day,
    AggregationType.by_hour,
    AggregationType.by_week,
    AggregationType.by_month,
    AggregationType.by_status,
)

VALID_AGGREGATIONS: Final[dict[ResourceType, tuple[AggregationType, ...]]] = {
    ResourceType.transaction: (*_TEMPORAL_AND_STATUS, AggregationType.by_channel),
    ResourceType.refund: (*_TEMPORAL_AND_STATUS, AggregationType.by_type),
    ResourceType.payout: _TEMPORAL_AND_STATUS,
    ResourceType.dispute: (
        *_TEMPORAL_AND_STATUS,
        AggregationType.by_category,
        AggregationType.by_resolution,
    ),
}

STATUS_VALUES: Final[dict[ResourceType, tuple[str, ...]]] = {
    ResourceType.transaction: tuple(TransactionStatus),
    ResourceType.refund: tuple(RefundStatus),
    ResourceType.payout: tuple(PayoutStatus),
    ResourceType.dispute: tuple(DisputeStatus),
}

API_ENDPOINTS: Final[dict[ResourceType, str]] = {
    ResourceType.transaction: "/transaction",
    ResourceType.refund: "/refund",
    ResourceType.payout: "/settlement",
    ResourceType.dispute: "/dispute",
}

_DISPLAY_NAMES: Final[dict[ResourceType, str]] = {
    ResourceType.transaction: "Transaction",
    ResourceType.refund: "Refund",
    ResourceType.payout: "Payout",
    ResourceType.dispute: "Dispute",
}


def resource_display_name(resource_type: ResourceType, *, plural: bool = False) -> str:
    """Return a human-readable name for a resource type.

    Args:
        resource_type: Resource type to describe.
        plural: When True, return the lower-case plural form used in progress
            messages (e.g. "transactions").

    Returns:
        Display name such as "Refund" or "refunds".
    """

    name = _DISPLAY_NAMES[ResourceType(resource_type)]
    if plural:
        return f"{name.lower()}s"
    return name


def is_valid_aggregation(resource_type: ResourceType, aggregation_type: str) -> bool:
    """Return True when an aggregation type is allowed for a resource type."""

    return aggregation_type in VALID_AGGREGATIONS[ResourceType(resource_type)]


def coerce_enum(enum_cls: type[E], value: str | None) -> E | str | None:
    """Return the enum member for `value`, or `value` unchanged when unknown.

    Args:
        enum_cls: StrEnum class to look the value up in.
        value: Raw string value (or None).

    Returns:
        The matching enum member, the original string when no member matches,
        or None when `value` is None.
    """

    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return value
