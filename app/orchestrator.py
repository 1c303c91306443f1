"""Orchestrator coordinating search, reconciliation and stored-repository reads"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional

from app.config.settings import Settings, settings
from app.crawlers.search.client import GitHubSearchClient
from app.crawlers.search.contracts import FetchResult
from app.crawlers.search.query_builder import build_search_query
from app.crawlers.search.reconcile_stage import ReconcileResult, ReconcileStage
from app.schemas import SearchRequest
from app.services.search.repository_mapper import RepositoryRecord
from app.services.search.repository_reader import RepositoryReader
from app.services.search.repository_store import SQLAlchemyRepositoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchConfig:
    """Remote endpoint and resource limits for one orchestrator instance."""

    base_url: str = "https://api.github.com"
    search_path: str = "/search/repositories"
    timeout_seconds: float = 30.0
    user_agent: Optional[str] = None
    store_max_workers: int = 4

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "SearchConfig":
        return cls(
            base_url=app_settings.GITHUB_API_BASE_URL,
            search_path=app_settings.GITHUB_SEARCH_REPOSITORIES_PATH,
            timeout_seconds=app_settings.GITHUB_TIMEOUT_SECONDS,
            user_agent=app_settings.USER_AGENT,
            store_max_workers=app_settings.STORE_MAX_WORKERS,
        )


class SearchOrchestrator:
    """Runs the search-fetch-reconcile pipeline and the stored-repository read path.

    Network I/O stays on the event loop; every store call goes through a
    dedicated thread pool so blocking database work never stalls it.
    """

    def __init__(
        self,
        *,
        config: Optional[SearchConfig] = None,
        store: Any | None = None,
        client_factory: Callable[[SearchConfig], Any] | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._config = config or SearchConfig.from_settings(settings)
        self._store = store or SQLAlchemyRepositoryStore()
        self._client_factory = client_factory or _default_client_factory
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self._config.store_max_workers,
            thread_name_prefix="store-io",
        )
        self._reconcile_stage = ReconcileStage(self._store, self._executor)
        self._reader = RepositoryReader(self._store, self._executor)

    async def search_and_reconcile(self, request: SearchRequest) -> FetchResult[ReconcileResult]:
        """Fetch matching repositories from GitHub and upsert them into the store.

        Returns an OK result holding the reconciled records, or the failure
        state (rate limit, API error, unclassified) unchanged.
        """

        query_url = build_search_query(
            self._config.search_path,
            request.query,
            language=request.language,
            sort=request.sort,
        )
        logger.info(f"Attempting to fetch repositories from GitHub API using URL: {query_url}")

        async with self._client_factory(self._config) as client:
            fetched = await client.search_repositories(query_url)

        if not fetched.ok:
            return FetchResult(
                state=fetched.state,
                status_code=fetched.status_code,
                error=fetched.error,
                retry_after_seconds=fetched.retry_after_seconds,
            )

        try:
            reconciled = await self._reconcile_stage.reconcile_items(fetched.data or [])
        except Exception as exc:
            logger.exception("Error reconciling fetched repositories", extra={"error": str(exc)})
            return FetchResult.failed(f"Error fetching or saving repositories: {exc}")

        logger.info("Search reconciled", extra={"stats": reconciled.stats()})
        return FetchResult.success(reconciled, status_code=fetched.status_code)

    async def read_stored(
        self,
        language: Optional[str] = None,
        min_stars: Optional[int] = None,
        sort: Optional[str] = None,
    ) -> list[RepositoryRecord]:
        return await self._reader.read(language=language, min_stars=min_stars, sort=sort)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)


def _default_client_factory(config: SearchConfig) -> GitHubSearchClient:
    return GitHubSearchClient(
        base_url=config.base_url,
        timeout_seconds=config.timeout_seconds,
        user_agent=config.user_agent,
    )
