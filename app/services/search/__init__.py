"""Repository search service helpers."""

from app.services.search.repository_mapper import RepositoryRecord, merge_records
from app.services.search.repository_reader import RepositoryFilter, SortSpec, build_repository_filter, resolve_sort

__all__ = [
    "RepositoryRecord",
    "merge_records",
    "RepositoryFilter",
    "SortSpec",
    "build_repository_filter",
    "resolve_sort",
]
