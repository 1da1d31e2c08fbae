"""Resource field registry and chartable-record normalization.

Upstream payloads for transactions, refunds, payouts, and disputes use
different field names for the same concepts (a payout's amount is
`total_amount`, a refund's timestamp is `refunded_at`, ...). Each resource type
gets one `ResourceFieldConfig` that knows its payload shape, so aggregation can
work on a single normalized `ChartableRecord` type.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .resources import ResourceType

RawRecord = Mapping[str, Any]
FieldGetter = Callable[[RawRecord], Any]


class InvalidResourceTypeError(ValueError):
    """Raised when a value outside `ResourceType` reaches the field registry."""


@dataclass(frozen=True, slots=True)
class ChartableRecord:
    """Resource-agnostic projection of a raw financial record.

    Attributes:
        amount: Amount in the currency's minor unit (kobo, cents, ...).
        currency: ISO currency code.
        created_at: ISO-8601 timestamp string used for temporal bucketing.
        status: Resource status slug.
        channel: Payment channel (transactions only).
        type: Refund type, full or partial (refunds only).
        category: Dispute category (disputes only).
        resolution: Dispute resolution slug, None while unresolved (disputes only).
    """

    amount: int
    currency: str
    created_at: str
    status: str
    channel: str | None = None
    type: str | None = None
    category: str | None = None
    resolution: str | None = None


@dataclass(frozen=True, slots=True)
class ResourceFieldConfig:
    """Accessors mapping one resource type's payload onto `ChartableRecord`.

    Attributes:
        resource_type: Resource type the accessors apply to.
        amount: Returns the amount in minor units.
        currency: Returns the currency code.
        created_at: Returns the timestamp used for bucketing.
        status: Returns the status slug.
        channel: Optional payment-channel accessor.
        type: Optional refund-type accessor.
        category: Optional dispute-category accessor.
        resolution: Optional dispute-resolution accessor.
    """

    resource_type: ResourceType
    amount: FieldGetter
    currency: FieldGetter
    created_at: FieldGetter
    status: FieldGetter
    channel: FieldGetter | None = None
    type: FieldGetter | None = None
    category: FieldGetter | None = None
    resolution: FieldGetter | None = None


def _required(key: str) -> FieldGetter:
    def getter(record: RawRecord) -> Any:
        try:
            return record[key]
        except KeyError:
            raise ValueError(f"Record is missing required field '{key}'.") from None

    return getter


def _optional(key: str) -> FieldGetter:
    return lambda record: record.get(key)


TRANSACTION_FIELDS = ResourceFieldConfig(
    resource_type=ResourceType.transaction,
    amount=_required("amount"),
    currency=_required("currency"),
    created_at=_required("createdAt"),
    status=_required("status"),
    channel=_optional("channel"),
)

REFUND_FIELDS = ResourceFieldConfig(
    resource_type=ResourceType.refund,
    amount=_required("amount"),
    currency=_required("currency"),
    created_at=_required("refunded_at"),
    status=_required("status"),
    type=_optional("refund_type"),
)

PAYOUT_FIELDS = ResourceFieldConfig(
    resource_type=ResourceType.payout,
    amount=_required("total_amount"),
    currency=_required("currency"),
    created_at=_required("createdAt"),
    status=_required("status"),
)

DISPUTE_FIELDS = ResourceFieldConfig(
    resource_type=ResourceType.dispute,
    amount=_required("refund_amount"),
    currency=_required("currency"),
    created_at=_required("createdAt"),
    status=_required("status"),
    category=_optional("category"),
    resolution=_optional("resolution"),
)

_FIELD_CONFIGS: dict[ResourceType, ResourceFieldConfig] = {
    config.resource_type: config
    for config in (TRANSACTION_FIELDS, REFUND_FIELDS, PAYOUT_FIELDS, DISPUTE_FIELDS)
}


def get_field_config(resource_type: ResourceType | str) -> ResourceFieldConfig:
    """Return the field accessors for a resource type.

    Args:
        resource_type: One of the four supported resource types.

    Returns:
        The shared, immutable ResourceFieldConfig for that type.

    Raises:
        InvalidResourceTypeError: When `resource_type` is not a ResourceType.
            Callers are expected to validate input first, so this indicates a
            programming error rather than bad user input.
    """

    config = _FIELD_CONFIGS.get(resource_type)
    if config is None:
        raise InvalidResourceTypeError(f"Unknown resource type: {resource_type!r}")
    return config


def _call(getter: FieldGetter | None, record: RawRecord) -> str | None:
    if getter is None:
        return None
    value = getter(record)
    return None if value is None else str(value)


def to_chartable_record(record: RawRecord, config: ResourceFieldConfig) -> ChartableRecord:
    """Project one raw record onto a ChartableRecord using `config`."""

    return ChartableRecord(
        amount=int(config.amount(record)),
        currency=str(config.currency(record)),
        created_at=str(config.created_at(record)),
        status=str(config.status(record)),
        channel=_call(config.channel, record),
        type=_call(config.type, record),
        category=_call(config.category, record),
        resolution=_call(config.resolution, record),
    )


def to_chartable_records(
    records: Iterable[RawRecord],
    config: ResourceFieldConfig,
) -> tuple[ChartableRecord, ...]:
    """Normalize raw records, preserving order one-to-one.

    Args:
        records: Raw upstream payload records. They are read, never modified.
        config: Field accessors for the records' resource type.

    Returns:
        A tuple with one ChartableRecord per input record, in input order.
    """

    return tuple(to_chartable_record(record, config) for record in records)
