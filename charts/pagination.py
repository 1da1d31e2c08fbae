"""Paginated fetching of raw records from the upstream records API."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from .dto import ChartRequest, FetchProgress
from .records import RawRecord
from .resources import API_ENDPOINTS, ResourceType

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
MAX_PAGES = 10


class RecordsService(Protocol):
    """Upstream records collaborator.

    Implementations perform one authenticated GET and return the decoded JSON
    body, whose `data` key holds the page of records.
    """

    def get(self, endpoint: str, auth_token: str, params: Mapping[str, Any]) -> Mapping[str, Any]: ...


def build_request_params(request: ChartRequest, page: int) -> dict[str, Any]:
    """Build query parameters for one page of `request`.

    Transactions additionally request reduced payloads and accept a channel
    filter; other resources never receive either parameter.
    """

    params: dict[str, Any] = {"perPage": PAGE_SIZE, "page": page, "use_cursor": False}
    if request.resource_type == ResourceType.transaction:
        params["reduced_fields"] = True
        if request.channel:
            params["channel"] = str(request.channel)
    if request.status:
        params["status"] = request.status
    if request.from_date:
        params["from"] = request.from_date
    if request.to_date:
        params["to"] = request.to_date
    if request.currency:
        params["currency"] = request.currency
    return params


@dataclass(frozen=True, slots=True)
class PageResult:
    """Outcome of one `RecordPager.fetch_next_page` call.

    Args:
        page: 1-based page number that was fetched.
        size: Number of records the page contained.
        progress_due: True when callers should report a progress update.
        done: True when no further pages will be fetched.
    """

    page: int
    size: int
    progress_due: bool
    done: bool


class RecordPager:
    """Fetch records one page at a time, up to `MAX_PAGES` pages.

    The pager stops after a short page (fewer than `PAGE_SIZE` records) or
    once `MAX_PAGES` pages have been fetched. When the cap is reached on a
    full page, `truncated` is set because more records may exist upstream.
    """

    def __init__(self, request: ChartRequest, records_service: RecordsService, auth_token: str) -> None:
        self.request = request
        self.records_service = records_service
        self.auth_token = auth_token
        self.endpoint = API_ENDPOINTS[ResourceType(request.resource_type)]
        self.records: list[RawRecord] = []
        self.page = 0
        self.done = False
        self.truncated = False

    def fetch_next_page(self) -> PageResult:
        """Fetch the next page and append its records.

        Raises:
            RuntimeError: When called after the pager has finished.
        """

        if self.done:
            raise RuntimeError("RecordPager has already fetched its last page.")

        self.page += 1
        params = build_request_params(self.request, self.page)
        logger.debug("Fetching %s page %s", self.endpoint, self.page)
        response = self.records_service.get(self.endpoint, self.auth_token, params)
        page_records = list(response.get("data") or ())
        self.records.extend(page_records)

        full_page = len(page_records) >= PAGE_SIZE
        at_cap = self.page >= MAX_PAGES
        self.done = not full_page or at_cap
        self.truncated = full_page and at_cap
        return PageResult(
            page=self.page,
            size=len(page_records),
            progress_due=full_page and not at_cap,
            done=self.done,
        )


@dataclass(frozen=True, slots=True)
class FetchResult:
    """All records fetched for a request."""

    records: tuple[RawRecord, ...]
    pages: int
    truncated: bool


def fetch_all_records(
    request: ChartRequest,
    records_service: RecordsService,
    auth_token: str,
    *,
    on_progress: Callable[[FetchProgress], None] | None = None,
) -> FetchResult:
    """Fetch every page for `request` without emitting chart states.

    Args:
        request: Validated chart request.
        records_service: Upstream records collaborator.
        auth_token: Bearer token forwarded to the collaborator.
        on_progress: Optional callback invoked after each full page except
            the last allowed one.

    Returns:
        FetchResult with the accumulated records in fetch order.
    """

    pager = RecordPager(request, records_service, auth_token)
    while not pager.done:
        result = pager.fetch_next_page()
        if result.progress_due and on_progress is not None:
            on_progress(FetchProgress(page=result.page, loaded=len(pager.records)))
    return FetchResult(records=tuple(pager.records), pages=pager.page, truncated=pager.truncated)
