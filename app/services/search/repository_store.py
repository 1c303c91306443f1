"""SQLAlchemy-backed store for repository records."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy import func

from app.config.database import SessionLocal
from app.models.github_repository import GitHubRepository
from app.services.search.repository_mapper import RepositoryRecord
from app.services.search.repository_reader import RepositoryFilter, SortSpec

logger = logging.getLogger(__name__)


class SQLAlchemyRepositoryStore:
    """Session-per-call store; every write is committed before returning."""

    def __init__(self, session_factory: Callable[[], Any] = SessionLocal) -> None:
        self._session_factory = session_factory

    def find_by_id(self, repo_id: int) -> Optional[RepositoryRecord]:
        db = self._session_factory()
        try:
            row = db.get(GitHubRepository, repo_id)
            return _row_to_record(row) if row is not None else None
        finally:
            db.close()

    def save(self, record: RepositoryRecord) -> RepositoryRecord:
        db = self._session_factory()
        try:
            row = db.get(GitHubRepository, record.id)
            if row is None:
                row = GitHubRepository(id=record.id)
                db.add(row)
            row.name = record.name
            row.description = record.description
            row.owner_name = record.owner_name
            row.language = record.language
            row.stars_count = record.stars_count
            row.forks_count = record.forks_count
            row.last_updated = _to_utc(record.last_updated)
            db.commit()
            return record
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def find_matching(self, repository_filter: RepositoryFilter, sort_spec: SortSpec) -> list[RepositoryRecord]:
        db = self._session_factory()
        try:
            query = db.query(GitHubRepository)
            if repository_filter.language is not None:
                query = query.filter(func.lower(GitHubRepository.language) == repository_filter.language.lower())
            if repository_filter.min_stars is not None:
                query = query.filter(GitHubRepository.stars_count >= repository_filter.min_stars)

            column = getattr(GitHubRepository, sort_spec.field)
            query = query.order_by(column.desc() if sort_spec.descending else column.asc())
            return [_row_to_record(row) for row in query.all()]
        finally:
            db.close()


def _row_to_record(row: GitHubRepository) -> RepositoryRecord:
    return RepositoryRecord(
        id=int(row.id),
        name=row.name,
        owner_name=row.owner_name,
        description=row.description,
        language=row.language,
        stars_count=row.stars_count or 0,
        forks_count=row.forks_count or 0,
        last_updated=_to_utc(row.last_updated),
    )


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; they were written as UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
