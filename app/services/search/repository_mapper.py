"""Contract-safe mapping from GitHub search items to repository records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepositoryRecord:
    """Repository snapshot; two records are content-equal when every field matches."""

    id: int
    name: str
    owner_name: str
    description: Optional[str] = None
    language: Optional[str] = None
    stars_count: int = 0
    forks_count: int = 0
    last_updated: Optional[datetime] = None


@dataclass(frozen=True)
class RepositoryPayload:
    """Strict view of one search item: required fields are guaranteed present."""

    id: int
    name: str
    owner_login: str
    description: Optional[str]
    language: Optional[str]
    stargazers_count: Optional[int]
    forks_count: Optional[int]
    updated_at: Optional[str]


def parse_repository_payload(item: Any) -> Optional[RepositoryPayload]:
    """Return the strict payload, or None when id, name or owner.login is missing."""

    if not isinstance(item, dict):
        logger.warning("Skipping repository payload that is not an object", extra={"item": repr(item)})
        return None

    repo_id = _pick_id(item.get("id"))
    name = item.get("name")
    owner = item.get("owner")
    login = owner.get("login") if isinstance(owner, dict) else None

    if repo_id is None or name is None or login is None:
        logger.warning(
            "Skipping repository due to missing essential fields: id, name, or owner",
            extra={"item": item},
        )
        return None

    return RepositoryPayload(
        id=repo_id,
        name=str(name),
        owner_login=str(login),
        description=_pick_text(item.get("description")),
        language=_pick_text(item.get("language")),
        stargazers_count=_pick_count(item.get("stargazers_count")),
        forks_count=_pick_count(item.get("forks_count")),
        updated_at=_pick_text(item.get("updated_at")),
    )


def map_payload_to_record(payload: RepositoryPayload) -> RepositoryRecord:
    """Build a record, applying zero defaults for counts.

    Raises ValueError when `updated_at` is present but not a timestamp.
    """

    return RepositoryRecord(
        id=payload.id,
        name=payload.name,
        owner_name=payload.owner_login,
        description=payload.description,
        language=payload.language,
        stars_count=payload.stargazers_count or 0,
        forks_count=payload.forks_count or 0,
        last_updated=parse_timestamp(payload.updated_at),
    )


def merge_records(existing: RepositoryRecord, candidate: RepositoryRecord) -> RepositoryRecord:
    """Overwrite every field of `existing` with `candidate`, keeping the stored identity."""

    return replace(
        existing,
        name=candidate.name,
        owner_name=candidate.owner_name,
        description=candidate.description,
        language=candidate.language,
        stars_count=candidate.stars_count,
        forks_count=candidate.forks_count,
        last_updated=candidate.last_updated,
    )


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    if raw is None:
        return None
    try:
        value = date_parser.isoparse(raw)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"Invalid updated_at timestamp: {raw!r}") from exc
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _pick_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _pick_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _pick_count(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return None
