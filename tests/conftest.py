"""Pytest fixtures shared across the chart engine and Django integration tests."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import pytest


class FakeRecordsService:
    """Scripted records service returning one configured page per call.

    Args:
        pages: Page payloads returned in order; calls past the end return an
            empty page.
        error: Optional exception raised on the call numbered `fail_on_call`.
        fail_on_call: 1-based call number that raises `error`.
    """

    def __init__(
        self,
        pages: Sequence[Sequence[Mapping[str, Any]]] = (),
        *,
        error: Exception | None = None,
        fail_on_call: int = 1,
    ) -> None:
        self.pages = [list(page) for page in pages]
        self.error = error
        self.fail_on_call = fail_on_call
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def get(self, endpoint: str, auth_token: str, params: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append((endpoint, auth_token, dict(params)))
        if self.error is not None and len(self.calls) == self.fail_on_call:
            raise self.error
        index = len(self.calls) - 1
        data = self.pages[index] if index < len(self.pages) else []
        return {"status": True, "data": data}


def make_transaction(
    *,
    amount: int = 1000,
    currency: str = "NGN",
    created_at: str = "2024-12-10T10:15:00Z",
    status: str = "success",
    channel: str | None = "card",
) -> dict[str, Any]:
    """Return a raw transaction payload."""

    return {
        "id": 1,
        "amount": amount,
        "currency": currency,
        "createdAt": created_at,
        "status": status,
        "channel": channel,
    }


def make_page(size: int, **overrides: Any) -> list[dict[str, Any]]:
    """Return a page of `size` identical raw transactions."""

    return [make_transaction(**overrides) for _ in range(size)]


@pytest.fixture
def records_service_factory():
    """Return a factory building FakeRecordsService instances."""

    return FakeRecordsService


@pytest.fixture
def transaction_factory():
    """Return a factory building raw transaction payloads."""

    return make_transaction


@pytest.fixture
def page_factory():
    """Return a factory building full or partial pages of raw transactions."""

    return make_page


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Enforce that every test has exactly one speed marker.

    - `unit`: pure, fast tests with no Django or network access.
    - `integration`: tests touching Django settings, commands, or HTTP.

    Each test must have exactly one of these markers.
    """

    invalid: list[str] = []
    for item in items:
        has_unit = item.get_closest_marker("unit") is not None
        has_integration = item.get_closest_marker("integration") is not None
        if has_unit == has_integration:
            markers = []
            if has_unit:
                markers.append("unit")
            if has_integration:
                markers.append("integration")
            invalid.append(f"{item.nodeid} (markers={markers or 'none'})")

    if invalid:
        joined = "\n".join(f"- {nodeid}" for nodeid in invalid)
        raise pytest.UsageError(
            "Each test must have exactly one speed marker: `@pytest.mark.unit` or "
            "`@pytest.mark.integration`.\n"
            f"Offending tests:\n{joined}"
        )
