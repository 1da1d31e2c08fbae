"""Streaming chart generation.

`ChartGenerationStream` drives one chart request through validation, paginated
fetching, and aggregation. Each `next()` advances the pipeline until it has a
state to report, so a consumer sees progress as pages arrive and always ends on
exactly one terminal state.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from enum import StrEnum
from typing import Any

from .aggregation import aggregate_records, calculate_summary, generate_chart_label, get_chart_type
from .dto import (
    ChartCancelledState,
    ChartErrorState,
    ChartGenerationState,
    ChartLoadingState,
    ChartRequest,
    ChartSuccessState,
    ChartTerminalState,
    ChartType,
)
from .pagination import MAX_PAGES, PAGE_SIZE, RecordPager, RecordsService
from .records import get_field_config, to_chartable_records
from .resources import ResourceType, resource_display_name
from .validation import validate_chart_params

logger = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = "Authentication token not available. Please ensure you are logged in."
FALLBACK_ERROR_MESSAGE = "Failed to generate chart data"

StateCallback = Callable[[ChartGenerationState], None]


class _Phase(StrEnum):
    start = "start"
    fetching = "fetching"
    processing = "processing"
    aggregate = "aggregate"
    finished = "finished"


class ChartGenerationStream(Iterator[ChartGenerationState]):
    """Pull-driven state machine producing chart generation states.

    Args:
        request: Chart request to execute.
        records_service: Upstream records collaborator.
        auth_token: Bearer token for the upstream API. An empty token ends the
            stream with an error before any I/O.

    Notes:
        `cancel()` may be called from another thread. It takes effect before
        the next page fetch or before aggregation, ending the stream with a
        ChartCancelledState.
    """

    def __init__(
        self,
        request: ChartRequest,
        records_service: RecordsService,
        auth_token: str | None,
    ) -> None:
        self.request = request
        self.records_service = records_service
        self.auth_token = auth_token
        self._phase = _Phase.start
        self._cancelled = threading.Event()
        self._ran = False
        self._pager: RecordPager | None = None
        self._label = ""
        self._chart_type = ChartType.area
        self._plural = ""

    def __iter__(self) -> ChartGenerationStream:
        return self

    def __next__(self) -> ChartGenerationState:
        if self._phase is _Phase.finished:
            raise StopIteration
        phase = self._phase
        try:
            state = self._advance()
        except Exception as exc:
            state = self._fail(exc, phase=phase)
        if state.is_terminal:
            self._phase = _Phase.finished
            self._pager = None
        return state

    def cancel(self) -> None:
        """Request cancellation; safe to call from any thread."""

        self._cancelled.set()

    def run(self, on_state: StateCallback | None = None) -> ChartTerminalState:
        """Consume the stream, passing each state to `on_state`.

        Returns:
            The terminal state.

        Raises:
            RuntimeError: When the stream was already run or iterated.
        """

        if self._ran or self._phase is not _Phase.start:
            raise RuntimeError("ChartGenerationStream can only be run once.")
        self._ran = True
        state: ChartGenerationState | None = None
        for state in self:
            if on_state is not None:
                on_state(state)
        if state is None or not state.is_terminal:
            raise RuntimeError("ChartGenerationStream ended without a terminal state.")
        return state

    def _require_pager(self) -> RecordPager:
        if self._pager is None:
            raise RuntimeError("ChartGenerationStream has no active pager.")
        return self._pager

    def _loading(self, message: str) -> ChartLoadingState:
        return ChartLoadingState(label=self._label, chart_type=self._chart_type, message=message)

    def _advance(self) -> ChartGenerationState:
        while True:
            if self._phase is _Phase.start:
                return self._start()
            if self._phase is _Phase.fetching:
                state = self._fetch_page()
            elif self._phase is _Phase.processing:
                state = self._begin_processing()
            elif self._phase is _Phase.aggregate:
                state = self._aggregate()
            else:
                raise RuntimeError(f"Unexpected phase {self._phase!r}")
            if state is not None:
                return state

    def _start(self) -> ChartGenerationState:
        if not self.auth_token:
            logger.info("Chart generation rejected: no auth token")
            return ChartErrorState(error=MISSING_TOKEN_MESSAGE)

        validation = validate_chart_params(self.request)
        if not validation.is_valid:
            logger.info("Chart request rejected (%s): %s", validation.code, validation.error)
            return ChartErrorState(error=validation.error or FALLBACK_ERROR_MESSAGE, code=validation.code)

        resource_type = ResourceType(self.request.resource_type)
        self._label = generate_chart_label(self.request.aggregation_type, resource_type)
        self._chart_type = get_chart_type(self.request.aggregation_type)
        self._plural = resource_display_name(resource_type, plural=True)
        self._pager = RecordPager(self.request, self.records_service, self.auth_token)
        self._phase = _Phase.fetching
        logger.info(
            "Generating %s chart for %s",
            self.request.aggregation_type,
            self._plural,
        )
        return self._loading(f"Fetching {self._plural}...")

    def _fetch_page(self) -> ChartGenerationState | None:
        pager = self._require_pager()
        if self._cancelled.is_set():
            return self._cancel_state()
        result = pager.fetch_next_page()
        if result.done:
            self._phase = _Phase.processing
            return None
        if result.progress_due:
            return self._loading(f"Fetching {self._plural}... ({len(pager.records)} loaded)")
        return None

    def _begin_processing(self) -> ChartGenerationState:
        pager = self._require_pager()
        count = len(pager.records)
        if count == 0:
            logger.info("No %s matched the chart request", self._plural)
            return ChartSuccessState(
                label=self._label,
                chart_type=self._chart_type,
                summary=calculate_summary((), from_date=self.request.from_date, to_date=self.request.to_date),
                message=f"No {self._plural} found for the specified criteria",
            )
        self._phase = _Phase.aggregate
        return self._loading(f"Processing {count} {self._plural}...")

    def _aggregate(self) -> ChartGenerationState:
        pager = self._require_pager()
        if self._cancelled.is_set():
            return self._cancel_state()

        config = get_field_config(ResourceType(self.request.resource_type))
        records = to_chartable_records(pager.records, config)
        result = aggregate_records(records, self.request.aggregation_type)
        summary = calculate_summary(records, from_date=self.request.from_date, to_date=self.request.to_date)

        message = f"Generated chart data with {result.point_count} data points from {len(records)} {self._plural}"
        if pager.truncated:
            message += f". Results were limited to the first {MAX_PAGES * PAGE_SIZE} {self._plural}"
        logger.info(
            "Chart ready: %s points from %s %s (truncated=%s)",
            result.point_count,
            len(records),
            self._plural,
            pager.truncated,
        )
        return ChartSuccessState(
            label=self._label,
            chart_type=self._chart_type,
            summary=summary,
            message=message,
            chart_data=result.chart_data or (),
            chart_series=result.chart_series or (),
            truncated=pager.truncated,
        )

    def _cancel_state(self) -> ChartCancelledState:
        logger.info("Chart generation for %s cancelled", self._plural)
        return ChartCancelledState()

    def _fail(self, exc: Exception, *, phase: _Phase) -> ChartErrorState:
        if phase is _Phase.fetching:
            logger.warning("Fetching %s failed: %s", self._plural, exc)
        else:
            logger.exception("Chart generation failed")
        return ChartErrorState(error=str(exc) or FALLBACK_ERROR_MESSAGE)


def generate_chart_data(
    request: ChartRequest | Mapping[str, Any],
    records_service: RecordsService,
    auth_token: str | None,
    *,
    on_state: StateCallback | None = None,
) -> ChartTerminalState:
    """Generate chart data for a request and return the terminal state.

    Args:
        request: ChartRequest, or a params mapping accepted by
            `ChartRequest.from_params`.
        records_service: Upstream records collaborator.
        auth_token: Bearer token for the upstream API.
        on_state: Optional callback receiving every state in order, including
            the terminal one.

    Returns:
        ChartSuccessState, ChartErrorState, or ChartCancelledState.
    """

    if not isinstance(request, ChartRequest):
        try:
            request = ChartRequest.from_params(request)
        except ValueError as exc:
            state = ChartErrorState(error=str(exc))
            if on_state is not None:
                on_state(state)
            return state
    return ChartGenerationStream(request, records_service, auth_token).run(on_state)
