"""Filtered, sorted read access to stored repositories."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Optional

from app.services.search.repository_mapper import RepositoryRecord

logger = logging.getLogger(__name__)

SORT_STARS = "stars_count"
SORT_FORKS = "forks_count"
SORT_LAST_UPDATED = "last_updated"

_SORT_KEYS = {
    "forks": SORT_FORKS,
    "lastupdated": SORT_LAST_UPDATED,
}


@dataclass(frozen=True)
class RepositoryFilter:
    """Conjunctive filter; an unset field matches everything."""

    language: Optional[str] = None
    min_stars: Optional[int] = None


@dataclass(frozen=True)
class SortSpec:
    field: str = SORT_STARS
    descending: bool = True


def build_repository_filter(language: Optional[str], min_stars: Optional[int]) -> RepositoryFilter:
    """Normalize the language to lowercase so the comparison ignores GitHub's casing."""
    return RepositoryFilter(
        language=language.lower() if language else None,
        min_stars=min_stars,
    )


def resolve_sort(sort: Optional[str]) -> SortSpec:
    """`forks` and `lastupdated` pick their field; anything else sorts by stars."""
    field = _SORT_KEYS.get((sort or "").lower(), SORT_STARS)
    return SortSpec(field=field, descending=True)


class RepositoryReader:
    """Runs store reads on the given executor, off the event loop."""

    def __init__(self, store: Any, executor: Optional[Executor] = None) -> None:
        self._store = store
        self._executor = executor

    async def read(
        self,
        *,
        language: Optional[str] = None,
        min_stars: Optional[int] = None,
        sort: Optional[str] = None,
    ) -> list[RepositoryRecord]:
        repository_filter = build_repository_filter(language, min_stars)
        sort_spec = resolve_sort(sort)
        logger.info(
            "Retrieving stored repositories with filters: "
            f"language='{language or 'N/A'}', minStars='{min_stars if min_stars is not None else 'N/A'}', "
            f"sort='{sort or 'N/A'}'"
        )

        loop = asyncio.get_running_loop()
        records = await loop.run_in_executor(
            self._executor,
            lambda: self._store.find_matching(repository_filter, sort_spec),
        )
        logger.info(f"Found {len(records)} stored repositories matching criteria.")
        return list(records)
