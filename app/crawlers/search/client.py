"""Async GitHub search client with typed failure classification."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from app.crawlers.search.contracts import FetchResult

logger = logging.getLogger(__name__)

RATE_LIMIT_RESET_HEADER = "x-ratelimit-reset"
UNREADABLE_BODY = "<unreadable response body>"


def compute_retry_after_seconds(reset_epoch: int, now_epoch: float) -> int:
    """Seconds until the rate-limit window resets, never negative."""
    return max(0, int(reset_epoch - int(now_epoch)))


class GitHubSearchClient:
    """Issues a single repository search request and classifies the outcome.

    No retry or backoff is attempted: a rate limit or API error is returned to
    the caller as a `FetchResult` carrying enough detail to act on.
    """

    ACCEPT_JSON = "application/json"

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 30.0,
        user_agent: Optional[str] = None,
        transport: Optional[Any] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._user_agent = user_agent
        self._transport = transport
        self._clock = clock
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "GitHubSearchClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def search_repositories(self, query_url: str) -> FetchResult[list[dict[str, Any]]]:
        """Fetch `query_url` and return the `items` array of the search response."""

        client = await self._ensure_client()
        logger.info("Fetching repositories from GitHub API", extra={"url": query_url})

        try:
            response = await client.get(query_url, headers={"Accept": self.ACCEPT_JSON})
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error(
                "Unexpected error during GitHub API call",
                extra={"url": query_url, "error": str(exc)},
                exc_info=True,
            )
            return FetchResult.failed(f"Error fetching or saving repositories: {exc}")

        if not response.is_success:
            return self._classify_error(query_url, response)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error(
                "GitHub API returned an undecodable body",
                extra={"url": query_url, "status_code": response.status_code, "error": str(exc)},
            )
            return FetchResult.failed(
                f"Error fetching or saving repositories: {exc}",
                status_code=response.status_code,
            )

        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            logger.warning("GitHub API response did not contain 'items' array or was null")
            return FetchResult.success([], status_code=response.status_code)

        return FetchResult.success(items, status_code=response.status_code)

    def _classify_error(self, query_url: str, response: httpx.Response) -> FetchResult[Any]:
        status_code = response.status_code
        reset_raw = response.headers.get(RATE_LIMIT_RESET_HEADER)

        if status_code == 403 and reset_raw is not None:
            try:
                reset_epoch = int(reset_raw.strip())
            except ValueError:
                logger.error(
                    "GitHub API returned an invalid rate-limit reset header",
                    extra={"url": query_url, "reset_header": reset_raw},
                )
                return FetchResult.failed(
                    f"An unexpected error occurred during GitHub API call: invalid rate-limit reset '{reset_raw}'",
                    status_code=status_code,
                )

            retry_after = compute_retry_after_seconds(reset_epoch, self._clock())
            logger.warning(
                f"GitHub API rate limit exceeded. Retry after {retry_after} seconds.",
                extra={"url": query_url, "retry_after_seconds": retry_after},
            )
            return FetchResult.rate_limited(
                retry_after,
                error="GitHub API rate limit exceeded. Please try again later.",
                status_code=status_code,
            )

        body = self._read_body(response)
        if response.is_client_error:
            logger.error(f"GitHub API client error: {body} Status: {status_code}")
            return FetchResult.api_error(f"GitHub API client error: {body}", status_code)

        if response.is_server_error:
            logger.error(f"GitHub API server error: {body} Status: {status_code}")
            return FetchResult.api_error(f"GitHub API server error: {body}", status_code)

        logger.error(f"Unexpected GitHub API response: {body} Status: {status_code}")
        return FetchResult.failed(
            f"An unexpected error occurred during GitHub API call: {body}",
            status_code=status_code,
        )

    @staticmethod
    def _read_body(response: httpx.Response) -> str:
        try:
            return response.text
        except (httpx.ResponseNotRead, UnicodeDecodeError):
            return UNREADABLE_BODY

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client:
            return self._client

        headers = {"Accept": self.ACCEPT_JSON}
        if self._user_agent:
            headers["User-Agent"] = self._user_agent

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout_seconds,
            transport=self._transport,
        )
        return self._client
