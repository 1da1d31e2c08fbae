"""HTTP client for the upstream payments records API.

`PaystackRecordsClient` implements the chart engine's `RecordsService` protocol:
one authenticated GET per call, returning the decoded JSON body.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from typing import Any

from django.conf import settings

logger = logging.getLogger(__name__)


class RecordsApiError(Exception):
    """Raised when the records API call fails.

    Args:
        message: User-visible error message.
        status_code: HTTP status code, when a response was received.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecordsApiAuthError(RecordsApiError):
    """Raised when the records API rejects the bearer token (401/403)."""


def _encode_params(params: Mapping[str, Any]) -> dict[str, str]:
    encoded: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        else:
            encoded[key] = str(value)
    return encoded


def _error_message(body: bytes) -> str | None:
    try:
        payload = json.loads(body.decode("utf-8", errors="replace"))
    except ValueError:
        return None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return None


def _open(request: urllib.request.Request, *, timeout: float) -> bytes:
    """Perform the HTTP request and return the raw response body."""

    with urllib.request.urlopen(request, timeout=timeout) as response:
        return response.read()


class PaystackRecordsClient:
    """Records API client configured from Django settings.

    Args:
        base_url: API root; defaults to `settings.PAYSTACK_API_BASE_URL`.
        timeout: Per-request timeout in seconds; defaults to
            `settings.PAYSTACK_API_TIMEOUT_SECONDS`.
    """

    user_agent = "paystackCharts/1.0 (chart generation)"

    def __init__(self, *, base_url: str | None = None, timeout: float | None = None) -> None:
        self.base_url = (base_url or settings.PAYSTACK_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.PAYSTACK_API_TIMEOUT_SECONDS

    def build_url(self, endpoint: str, params: Mapping[str, Any]) -> str:
        query = urllib.parse.urlencode(_encode_params(params))
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        return f"{url}?{query}" if query else url

    def get(self, endpoint: str, auth_token: str, params: Mapping[str, Any]) -> Mapping[str, Any]:
        """Fetch one page of records.

        Args:
            endpoint: Resource path such as `/transaction`.
            auth_token: Bearer token for the API.
            params: Query parameters; booleans are sent as `true`/`false`.

        Returns:
            The decoded JSON body.

        Raises:
            RecordsApiAuthError: When the API answers 401 or 403.
            RecordsApiError: On other HTTP errors, network failures, timeouts,
                or a body that is not a JSON object.
        """

        url = self.build_url(endpoint, params)
        request = urllib.request.Request(
            url,
            headers={
                "Authorization": f"Bearer {auth_token}",
                "Accept": "application/json",
                "User-Agent": self.user_agent,
            },
        )
        logger.debug("GET %s", url)
        try:
            body = _open(request, timeout=self.timeout)
        except urllib.error.HTTPError as exc:
            message = _error_message(exc.read() or b"") or f"Records API request failed with status {exc.code}"
            if exc.code in (401, 403):
                raise RecordsApiAuthError(message, status_code=exc.code) from exc
            raise RecordsApiError(message, status_code=exc.code) from exc
        except urllib.error.URLError as exc:
            raise RecordsApiError(f"Records API request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise RecordsApiError(f"Records API request timed out after {self.timeout} seconds") from exc

        try:
            payload = json.loads(body.decode("utf-8"))
        except ValueError as exc:
            raise RecordsApiError("Records API returned an invalid JSON response") from exc
        if not isinstance(payload, dict):
            raise RecordsApiError("Records API returned an unexpected response shape")
        return payload
